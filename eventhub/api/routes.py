"""API routes for auth, event browsing and seat registration."""
import math
from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.models.domain import Registration
from eventhub.api.dependencies import get_current_user_id, get_optional_user_id
from eventhub.api.schemas import (
    AuthResponse,
    MAX_ID,
    ErrorResponse,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    LoginRequest,
    MessageResponse,
    MyEventResponse,
    MyEventsResponse,
    Pagination,
    RegistrationCreate,
    RegistrationResponse,
    SignupRequest,
    UserResponse,
)
from eventhub.services.auth import AuthGate
from eventhub.services.catalog import CatalogQuery, EventFilters
from eventhub.services.ledger import RegistrationLedger

router = APIRouter()

MAX_PAGE_SIZE = 100
# Keeps the row offset within a 64-bit integer
MAX_PAGE = MAX_ID // MAX_PAGE_SIZE


def _my_event(registration: Registration) -> MyEventResponse:
    event = EventResponse.model_validate(registration.event)
    return MyEventResponse(
        **event.model_dump(),
        registration_id=registration.id,
        status=registration.status,
        status_changed_at=registration.status_changed_at
    )


# Auth endpoints
@router.post("/auth/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, responses={
    400: {"model": ErrorResponse, "description": "Missing field, invalid email, short password or email taken"}
})
def signup(signup_data: SignupRequest, db: Session = Depends(get_db)):
    """Create an account; the response carries the first session token."""
    user, token = AuthGate(db).signup(signup_data.name, signup_data.email, signup_data.password)
    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=UserResponse.model_validate(user)
    )


@router.post("/auth/login", response_model=AuthResponse, responses={
    401: {"model": ErrorResponse, "description": "Invalid email or password"}
})
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Log in. Any token issued earlier for this user stops working."""
    user, token = AuthGate(db).login(login_data.email, login_data.password)
    return AuthResponse(
        message="Login successful",
        token=token,
        user=UserResponse.model_validate(user)
    )


@router.post("/auth/logout", response_model=MessageResponse)
def logout(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    AuthGate(db).logout(user_id)
    return MessageResponse(message="Logout successful")


# Event endpoints
@router.get("/events", response_model=EventListResponse)
def list_events(
    search: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """List events by date with text, category, location and date range filters."""
    filters = EventFilters(
        search=search,
        category=category,
        location=location,
        date_from=date_from,
        date_to=date_to
    )
    events, total = CatalogQuery(db).list_events(filters, page=page, limit=limit)
    return EventListResponse(
        events=[EventResponse.model_validate(event) for event in events],
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_events=total,
            limit=limit
        )
    )


@router.get("/events/{event_id}", response_model=EventDetailResponse, responses={
    404: {"model": ErrorResponse, "description": "Event not found"}
})
def get_event(
    event_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db)
):
    """Event detail. ``isRegistered`` is only true for an authenticated caller holding a seat."""
    event, is_registered = CatalogQuery(db).get_event(event_id, user_id=user_id)
    return EventDetailResponse(event=EventResponse.model_validate(event), is_registered=is_registered)


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    return CatalogQuery(db).categories()


@router.get("/locations", response_model=List[str])
def list_locations(db: Session = Depends(get_db)):
    return CatalogQuery(db).locations()


# Registration endpoints
@router.post("/registrations", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED, responses={
    400: {"model": ErrorResponse, "description": "Missing event id, or event is full"},
    404: {"model": ErrorResponse, "description": "Event not found"},
    409: {"model": ErrorResponse, "description": "Already registered for this event"}
})
def register_for_event(
    registration_data: RegistrationCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Take a seat at an event.

    WILL REFUSE if:
    - The event does not exist (404)
    - No seats are left (400)
    - The caller already holds a seat at this event (409)
    """
    registration = RegistrationLedger(db).register(user_id, registration_data.event_id)
    event = registration.event
    return RegistrationResponse(
        id=registration.id,
        user_id=registration.user_id,
        event_id=registration.event_id,
        status=registration.status,
        status_changed_at=registration.status_changed_at,
        event_name=event.name,
        event_date=event.date,
        location=event.location
    )


@router.delete("/registrations/{event_id}", response_model=MessageResponse, responses={
    404: {"model": ErrorResponse, "description": "No active registration to cancel"}
})
def cancel_registration(
    event_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Give the caller's seat back. The registration row is kept as cancelled."""
    RegistrationLedger(db).cancel(user_id, event_id)
    return MessageResponse(message="Registration cancelled successfully")


@router.get("/registrations/mine", response_model=MyEventsResponse)
def my_registrations(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """The caller's active registrations, split into upcoming and past events."""
    mine = RegistrationLedger(db).list_for_user(user_id)
    return MyEventsResponse(
        upcoming=[_my_event(registration) for registration in mine.upcoming],
        past=[_my_event(registration) for registration in mine.past],
        total=mine.total
    )
