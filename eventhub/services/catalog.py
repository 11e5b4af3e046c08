"""Read-only catalog queries over events. Never touches seat counters."""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session

from eventhub.models.domain import Event, Registration
from eventhub.models.enums import RegistrationStatus
from eventhub.services.errors import EventNotFoundError, ValidationError

LIKE_ESCAPE = "\\"


def _contains_pattern(text: str) -> str:
    """ILIKE pattern matching ``text`` literally anywhere; % and _ are not wildcards."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


@dataclass
class EventFilters:
    """Optional listing filters; empty values are ignored."""
    search: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


def parse_date_bound(value: Optional[str], field_name: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime filter value.

    A bare date (``2026-03-01``) becomes midnight, or the last instant of
    that day when ``end_of_day`` is set, so date ranges are inclusive.
    """
    if not value:
        return None
    value = value.strip()
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end_of_day else time.min)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: expected an ISO date", fields=[field_name])
    # Event dates are stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


class CatalogQuery:
    """Filterable, paginated projection of the events table."""

    def __init__(self, db: Session):
        self.db = db

    def list_events(
        self,
        filters: Optional[EventFilters] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Event], int]:
        """Return one page of events ordered by date, and the total number of matches."""
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive", fields=["page", "limit"])
        filters = filters or EventFilters()

        query = self.db.query(Event)

        # Text search (name or description)
        if filters.search:
            pattern = _contains_pattern(filters.search)
            query = query.filter(or_(
                Event.name.ilike(pattern, escape=LIKE_ESCAPE),
                Event.description.ilike(pattern, escape=LIKE_ESCAPE)
            ))

        if filters.category:
            query = query.filter(Event.category == filters.category)

        if filters.location:
            query = query.filter(Event.location.ilike(_contains_pattern(filters.location), escape=LIKE_ESCAPE))

        date_from = parse_date_bound(filters.date_from, "dateFrom")
        if date_from is not None:
            query = query.filter(Event.date >= date_from)

        date_to = parse_date_bound(filters.date_to, "dateTo", end_of_day=True)
        if date_to is not None:
            query = query.filter(Event.date <= date_to)

        total = query.count()
        events = (
            query.order_by(Event.date.asc(), Event.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return events, total

    def get_event(self, event_id: int, user_id: Optional[int] = None) -> Tuple[Event, bool]:
        """Fetch one event; ``is_registered`` is only ever True for an authenticated caller."""
        event = self.db.query(Event).filter(Event.id == event_id).first()
        if event is None:
            raise EventNotFoundError(event_id)

        is_registered = False
        if user_id is not None:
            is_registered = self.db.query(Registration.id).filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.status == RegistrationStatus.ACTIVE
            ).first() is not None

        return event, is_registered

    def categories(self) -> List[str]:
        rows = (
            self.db.query(Event.category)
            .filter(Event.category.isnot(None))
            .distinct()
            .order_by(Event.category)
            .all()
        )
        return [category for (category,) in rows]

    def locations(self) -> List[str]:
        rows = self.db.query(Event.location).distinct().order_by(Event.location).all()
        return [location for (location,) in rows]
