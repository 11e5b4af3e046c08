"""
Registration ledger - the only place that writes registrations and seat counters.

Invariant (per event, after every committed operation):

    available_seats == capacity - count(active registrations)

Register and cancel for one event run under that event's lock and inside one
transaction. The seat counter only moves through conditional UPDATEs; an
UPDATE that matches no row means another writer got there first.
"""
import threading
import time
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from loguru import logger
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, contains_eager

from eventhub import config
from eventhub.models.domain import Event, Registration
from eventhub.models.enums import RegistrationStatus
from eventhub.services import state_machine
from eventhub.services.errors import (
    AlreadyRegisteredError,
    EventFullError,
    EventNotFoundError,
    InternalError,
    RegistrationNotFoundError,
    ServiceError,
)
from eventhub.services.state_machine import InvalidTransitionError

T = TypeVar("T")


class EventLocks:
    """
    One mutex per event id. Operations on different events never share a lock.

    A lock lives only while some caller holds a reference to it, so ids that
    are no longer in use (or never existed) do not accumulate.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

    def for_event(self, event_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(event_id)
            if lock is None:
                lock = self._locks[event_id] = threading.Lock()
            return lock


# Shared by every request handled by this process
event_locks = EventLocks()


@dataclass
class UserRegistrations:
    """Active registrations of one user, split around a reference time."""
    upcoming: List[Registration] = field(default_factory=list)
    past: List[Registration] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.upcoming) + len(self.past)


class RegistrationLedger:
    """Enforces seat capacity and the one-active-registration-per-pair rule."""

    def __init__(
        self,
        db: Session,
        locks: EventLocks = event_locks,
        max_attempts: int = config.LEDGER_MAX_ATTEMPTS,
        retry_backoff: float = config.LEDGER_RETRY_BACKOFF_SECONDS
    ):
        self.db = db
        self.locks = locks
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff

    def register(self, user_id: int, event_id: int) -> Registration:
        """
        Take a seat at an event for a user.

        Refuses with:
        - EventNotFoundError if the event does not exist
        - EventFullError if no seat is left (also when the last seat is lost to a concurrent request)
        - AlreadyRegisteredError if the pair is already active (also on a concurrent double submit)

        A cancelled registration is reactivated in place; no second row is created.
        """
        with self.locks.for_event(event_id):
            registration = self._in_transaction(
                lambda: self._register(user_id, event_id),
                operation="register"
            )
        logger.info(f"User {user_id} registered for event {event_id} (registration {registration.id})")
        return registration

    def cancel(self, user_id: int, event_id: int) -> None:
        """
        Cancel the user's active registration and give the seat back.

        Cancelling twice is refused with RegistrationNotFoundError and leaves the counter alone.
        """
        with self.locks.for_event(event_id):
            self._in_transaction(
                lambda: self._cancel(user_id, event_id),
                operation="cancel"
            )
        logger.info(f"User {user_id} cancelled registration for event {event_id}")

    def list_for_user(self, user_id: int, now: Optional[datetime] = None) -> UserRegistrations:
        """Active registrations of a user, ascending by event date, split into upcoming and past."""
        now = now or datetime.utcnow()
        registrations = (
            self.db.query(Registration)
            .join(Registration.event)
            .options(contains_eager(Registration.event))
            .filter(
                Registration.user_id == user_id,
                Registration.status == RegistrationStatus.ACTIVE
            )
            .order_by(Event.date.asc(), Registration.id.asc())
            .all()
        )

        result = UserRegistrations()
        for registration in registrations:
            if registration.event.date >= now:
                result.upcoming.append(registration)
            else:
                result.past.append(registration)
        return result

    def _register(self, user_id: int, event_id: int) -> Registration:
        event = self._load_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if event.available_seats <= 0:
            raise EventFullError(event_id)

        registration = self._find_registration(user_id, event_id)
        current = registration.status if registration is not None else None
        try:
            new_status = state_machine.activate(current)
        except InvalidTransitionError:
            raise AlreadyRegisteredError(user_id, event_id)

        if not self._claim_seat(event_id):
            logger.warning(f"Race lost: event {event_id} filled up before user {user_id} could claim a seat")
            raise EventFullError(event_id)

        now = datetime.utcnow()
        if registration is None:
            registration = Registration(
                user_id=user_id,
                event_id=event_id,
                status=new_status,
                status_changed_at=now
            )
            self.db.add(registration)
            try:
                self.db.flush()
            except IntegrityError as exc:
                # The unique (user_id, event_id) row was written by a concurrent request
                logger.warning(f"Race lost: duplicate registration of user {user_id} for event {event_id}")
                raise AlreadyRegisteredError(user_id, event_id) from exc
        elif not self._move_status(registration.id, current, new_status, now):
            logger.warning(f"Race lost: registration {registration.id} changed status concurrently")
            raise AlreadyRegisteredError(user_id, event_id)

        return registration

    def _cancel(self, user_id: int, event_id: int) -> None:
        event = self._load_event(event_id)
        registration = self._find_registration(user_id, event_id) if event is not None else None
        current = registration.status if registration is not None else None
        try:
            new_status = state_machine.cancel(current)
        except InvalidTransitionError:
            raise RegistrationNotFoundError(user_id, event_id)

        if not self._move_status(registration.id, current, new_status, datetime.utcnow()):
            raise RegistrationNotFoundError(user_id, event_id)

        if not self._release_seat(event_id):
            logger.error(
                f"Seat counter of event {event_id} is already at capacity while cancelling "
                f"registration {registration.id}"
            )
            raise InternalError("Seat counter out of sync with registrations")

    def _in_transaction(self, work: Callable[[], T], operation: str) -> T:
        """
        Run ``work`` and commit it as one unit.

        Business refusals roll back and propagate untouched. Transient storage
        failures (lock contention, deadlock, serialization) roll back and are
        retried up to ``max_attempts`` times before surfacing as InternalError.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = work()
                self.db.commit()
                return result
            except ServiceError:
                self.db.rollback()
                raise
            except OperationalError as exc:
                self.db.rollback()
                if attempt >= self.max_attempts:
                    logger.error(f"Ledger {operation} failed after {attempt} attempts: {exc}")
                    raise InternalError(f"Failed to {operation} registration") from exc
                logger.warning(
                    f"Ledger {operation} hit a transient storage error "
                    f"(attempt {attempt}/{self.max_attempts}): {exc}"
                )
                time.sleep(self.retry_backoff * attempt)
            except Exception:
                self.db.rollback()
                raise
        raise InternalError(f"Failed to {operation} registration")

    def _load_event(self, event_id: int) -> Optional[Event]:
        # FOR UPDATE serializes writers across processes on PostgreSQL; SQLite ignores it
        return self.db.get(Event, event_id, populate_existing=True, with_for_update=True)

    def _find_registration(self, user_id: int, event_id: int) -> Optional[Registration]:
        return (
            self.db.query(Registration)
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id
            )
            .populate_existing()
            .first()
        )

    def _claim_seat(self, event_id: int) -> bool:
        """Atomic conditional decrement. False means no seat was left to take."""
        claimed = (
            self.db.query(Event)
            .filter(Event.id == event_id, Event.available_seats > 0)
            .update({Event.available_seats: Event.available_seats - 1}, synchronize_session=False)
        )
        return claimed == 1

    def _release_seat(self, event_id: int) -> bool:
        """Atomic conditional increment, bounded above by capacity."""
        released = (
            self.db.query(Event)
            .filter(Event.id == event_id, Event.available_seats < Event.capacity)
            .update({Event.available_seats: Event.available_seats + 1}, synchronize_session=False)
        )
        return released == 1

    def _move_status(
        self,
        registration_id: int,
        expected: RegistrationStatus,
        target: RegistrationStatus,
        changed_at: datetime
    ) -> bool:
        """Compare-and-set on the registration status. False if someone else moved it first."""
        moved = (
            self.db.query(Registration)
            .filter(Registration.id == registration_id, Registration.status == expected)
            .update(
                {Registration.status: target, Registration.status_changed_at: changed_at},
                synchronize_session=False
            )
        )
        return moved == 1
