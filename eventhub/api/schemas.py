"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field
from eventhub.models.enums import RegistrationStatus

# Largest id a signed 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1


# Auth schemas
class SignupRequest(BaseModel):
    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=254)
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# Event schemas
class EventResponse(BaseModel):
    id: int
    name: str
    organizer: str
    location: str
    date: datetime
    description: Optional[str]
    capacity: int
    available_seats: int
    category: Optional[str]
    tags: List[str] = []
    created_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    current_page: int = Field(..., serialization_alias="currentPage")
    total_pages: int = Field(..., serialization_alias="totalPages")
    total_events: int = Field(..., serialization_alias="totalEvents")
    limit: int


class EventListResponse(BaseModel):
    events: List[EventResponse]
    pagination: Pagination


class EventDetailResponse(BaseModel):
    event: EventResponse
    is_registered: bool = Field(False, serialization_alias="isRegistered")


# Registration schemas
class RegistrationCreate(BaseModel):
    # The web client historically sends camelCase
    event_id: int = Field(..., gt=0, le=MAX_ID, validation_alias=AliasChoices("event_id", "eventId"))


class RegistrationResponse(BaseModel):
    """Registration record plus the event summary shown on the confirmation screen."""
    id: int
    user_id: int
    event_id: int
    status: RegistrationStatus
    status_changed_at: datetime
    event_name: str
    event_date: datetime
    location: str


class MyEventResponse(EventResponse):
    """An event the user holds a seat at, flattened with its registration."""
    registration_id: int
    status: RegistrationStatus
    status_changed_at: datetime


class MyEventsResponse(BaseModel):
    upcoming: List[MyEventResponse]
    past: List[MyEventResponse]
    total: int


# Error response
class ErrorResponse(BaseModel):
    """Body of every refused or failed request."""
    detail: str
