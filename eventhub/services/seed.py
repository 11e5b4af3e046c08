"""Demo catalog inserted into an empty database."""
from datetime import datetime
from typing import Dict, List

from loguru import logger
from sqlalchemy.orm import Session

from eventhub.models.domain import Event

# Seeded with every seat free so the seat invariant holds with zero registrations
SAMPLE_EVENTS: List[Dict] = [
    {
        "name": "AI & Machine Learning Summit 2026",
        "organizer": "Tech Innovators Inc",
        "location": "San Francisco, CA",
        "date": "2026-03-15 09:00:00",
        "description": "Explore the latest advancements in artificial intelligence and machine learning. "
                       "Join industry leaders for keynotes, workshops, and networking.",
        "capacity": 500,
        "category": "Technology",
        "tags": ["AI", "Machine Learning", "Tech", "Innovation"],
    },
    {
        "name": "Web Development Bootcamp",
        "organizer": "CodeMasters Academy",
        "location": "Austin, TX",
        "date": "2026-04-20 10:00:00",
        "description": "Intensive 3-day bootcamp covering React, Node.js, and modern web development practices.",
        "capacity": 150,
        "category": "Workshop",
        "tags": ["Web Dev", "React", "Node.js", "Coding"],
    },
    {
        "name": "Startup Pitch Night",
        "organizer": "Venture Connect",
        "location": "Seattle, WA",
        "date": "2026-03-25 18:00:00",
        "description": "Watch innovative startups pitch to angel investors and VCs.",
        "capacity": 200,
        "category": "Networking",
        "tags": ["Startup", "Investing", "Entrepreneurship", "Pitching"],
    },
    {
        "name": "Leadership Summit for Women",
        "organizer": "Empower Leaders",
        "location": "Chicago, IL",
        "date": "2026-06-05 09:00:00",
        "description": "Workshops, panel discussions, and mentorship for women in leadership roles.",
        "capacity": 300,
        "category": "Conference",
        "tags": ["Leadership", "Women", "Career", "Professional Development"],
    },
    {
        "name": "Jazz Under the Stars",
        "organizer": "City Arts Foundation",
        "location": "New Orleans, LA",
        "date": "2026-07-12 19:00:00",
        "description": "Outdoor jazz concert featuring renowned musicians.",
        "capacity": 1000,
        "category": "Music",
        "tags": ["Jazz", "Music", "Outdoor", "Concert"],
    },
    {
        "name": "Modern Art Exhibition Opening",
        "organizer": "Metropolitan Gallery",
        "location": "Boston, MA",
        "date": "2026-05-20 17:00:00",
        "description": "Opening night for a contemporary art exhibition featuring emerging artists.",
        "capacity": 250,
        "category": "Arts",
        "tags": ["Art", "Exhibition", "Culture", "Gallery"],
    },
    {
        "name": "Yoga & Meditation Retreat",
        "organizer": "Peaceful Mind Wellness",
        "location": "Sedona, AZ",
        "date": "2026-08-10 07:00:00",
        "description": "Weekend retreat focused on mindfulness, yoga practice, and holistic wellness.",
        "capacity": 50,
        "category": "Wellness",
        "tags": ["Yoga", "Meditation", "Wellness", "Retreat"],
    },
    {
        "name": "Marathon Training Camp",
        "organizer": "City Runners Club",
        "location": "Portland, OR",
        "date": "2026-09-01 06:00:00",
        "description": "Marathon preparation program with nutrition guidance and injury prevention workshops.",
        "capacity": 100,
        "category": "Sports",
        "tags": ["Running", "Marathon", "Fitness", "Training"],
    },
    {
        "name": "Craft Beer Festival",
        "organizer": "Brewmasters Alliance",
        "location": "San Diego, CA",
        "date": "2026-09-20 12:00:00",
        "description": "Sample craft beers from over 50 local and national breweries.",
        "capacity": 2000,
        "category": "Food & Drink",
        "tags": ["Beer", "Festival", "Food", "Entertainment"],
    },
    {
        "name": "Sustainable Living Workshop",
        "organizer": "Green Future Initiative",
        "location": "Portland, OR",
        "date": "2026-10-25 11:00:00",
        "description": "Practical strategies for eco-friendly living and zero-waste practices.",
        "capacity": 60,
        "category": "Workshop",
        "tags": ["Sustainability", "Environment", "Green Living", "Eco-Friendly"],
    },
    {
        "name": "Blockchain & Crypto Summit",
        "organizer": "Decentralize Network",
        "location": "Miami, FL",
        "date": "2026-11-08 10:00:00",
        "description": "Deep dive into blockchain technology, cryptocurrency trends, and Web3 innovations.",
        "capacity": 300,
        "category": "Technology",
        "tags": ["Blockchain", "Crypto", "Web3", "Finance"],
    },
    {
        "name": "Data Science & Analytics Conference",
        "organizer": "DataMinds Collective",
        "location": "San Francisco, CA",
        "date": "2026-12-03 09:00:00",
        "description": "Data visualization, predictive analytics, and big data solutions.",
        "capacity": 400,
        "category": "Technology",
        "tags": ["Data Science", "Analytics", "Big Data", "AI"],
    },
]


def seed_events(db: Session, events: List[Dict] = SAMPLE_EVENTS) -> int:
    """Insert ``events`` if the catalog is empty. Returns how many rows were added."""
    existing = db.query(Event).count()
    if existing > 0:
        logger.info(f"Database already contains {existing} events. Skipping seed.")
        return 0

    for data in events:
        db.add(Event(
            name=data["name"],
            organizer=data["organizer"],
            location=data["location"],
            date=datetime.strptime(data["date"], "%Y-%m-%d %H:%M:%S"),
            description=data.get("description"),
            capacity=data["capacity"],
            available_seats=data["capacity"],
            category=data.get("category"),
            tags=list(data.get("tags", [])),
        ))
    db.commit()

    logger.info(f"Seeded {len(events)} events")
    return len(events)
