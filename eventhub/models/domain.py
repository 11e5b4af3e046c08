"""Domain models - events, users, their sessions and registrations."""
from datetime import datetime
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from eventhub.database import Base
from eventhub.models.enums import RegistrationStatus


class Event(Base):
    """
    An event with a fixed number of seats.

    Invariants enforced here:
    - capacity is positive and never changes after creation
    - 0 <= available_seats <= capacity (only the registration ledger writes it)
    """
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False)
    organizer = Column(String, nullable=False)
    location = Column(String, nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    description = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    category = Column(String, nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    registrations = relationship("Registration", back_populates="event")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_events_capacity_positive"),
        CheckConstraint("available_seats >= 0", name="ck_events_available_seats_non_negative"),
        CheckConstraint("available_seats <= capacity", name="ck_events_available_seats_lte_capacity"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name!r}, available={self.available_seats}/{self.capacity})>"


class User(Base):
    """A person who can sign in and hold registrations. Email is the login identifier."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    registrations = relationship("Registration", back_populates="user")
    session = relationship("UserSession", back_populates="user", uselist=False, cascade="all, delete-orphan")


class UserSession(Base):
    """
    The single live credential of a user.

    Invariant: user_id is unique, so issuing a new token replaces the prior one.
    """
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    token = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="session")


class Registration(Base):
    """
    A user's seat at an event.

    Invariants:
    - Exactly one row per (user_id, event_id); re-registering after a
      cancellation flips the existing row back to active
    - Status is binary: active or cancelled
    - Rows are never hard-deleted
    """
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SQLEnum(RegistrationStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=RegistrationStatus.ACTIVE,
        index=True
    )

    # Last time status flipped (registration or cancellation)
    status_changed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_registrations_user_event"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
