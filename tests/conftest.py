"""Pytest configuration and shared fixtures."""
import os

# Must be set before eventhub is imported: keeps the app off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SEED_ON_STARTUP", "false")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventhub.database import Base, create_db_engine, get_db
from eventhub.main import app
from eventhub.models.domain import Event, User


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def session_factory(tmp_path):
    """
    Sessionmaker over a file-backed SQLite database.

    Used by tests that run ledger operations from several threads, each with
    its own connection, the way concurrent requests do.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


def _add_event(session, capacity=100, available_seats=None, date=None, **overrides):
    event = Event(
        name=overrides.pop("name", "Python Meetup"),
        organizer=overrides.pop("organizer", "PyData Local"),
        location=overrides.pop("location", "Austin, TX"),
        date=date or datetime.utcnow() + timedelta(days=30),
        description=overrides.pop("description", "Talks and lightning talks"),
        capacity=capacity,
        available_seats=capacity if available_seats is None else available_seats,
        category=overrides.pop("category", "Technology"),
        tags=overrides.pop("tags", ["Python", "Community"]),
        **overrides
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


def _add_user(session, name="Ada Lovelace", email=None):
    # Ledger tests never log in, so the hash does not need to be real
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        password_hash="not-a-real-hash"
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def make_event(db_session):
    """Factory for events; all seats free unless ``available_seats`` is given."""
    def factory(**kwargs):
        return _add_event(db_session, **kwargs)
    return factory


@pytest.fixture
def make_user(db_session):
    def factory(name="Ada Lovelace", email=None):
        return _add_user(db_session, name=name, email=email)
    return factory


@pytest.fixture
def sample_event(make_event):
    """An upcoming event with 500 free seats."""
    return make_event(capacity=500, name="AI & Machine Learning Summit")


@pytest.fixture
def sample_user(make_user):
    return make_user()


@pytest.fixture
def api_session_factory():
    """In-memory database shared by the test and the app's request threads."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


@pytest.fixture
def api_db(api_session_factory):
    """Session on the API's database, for arranging data and checking results."""
    session = api_session_factory()
    yield session
    session.close()


@pytest.fixture
def client(api_session_factory):
    """TestClient whose requests use the per-test database."""
    def override_get_db():
        db = api_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_event(api_db):
    def factory(**kwargs):
        return _add_event(api_db, **kwargs)
    return factory
