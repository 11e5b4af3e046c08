"""Error taxonomy shared by the services and mapped to HTTP by the API layer."""
from typing import List, Optional


class ServiceError(Exception):
    """Base class: every service failure carries a message and an HTTP status."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Missing or malformed input."""
    status_code = 400

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        self.fields = fields or []
        super().__init__(message)


class EmailTakenError(ValidationError):
    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered", fields=["email"])


class NotFoundError(ServiceError):
    status_code = 404


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__("Event not found")


class RegistrationNotFoundError(NotFoundError):
    def __init__(self, user_id: int, event_id: int):
        self.user_id = user_id
        self.event_id = event_id
        super().__init__("Registration not found or already cancelled")


class ConflictError(ServiceError):
    """
    A business rule refused the operation.
    This is a definitive outcome for the caller and is never retried.
    """
    status_code = 409


class EventFullError(ConflictError):
    # Surfaced as 400 to keep the public contract of the API
    status_code = 400

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__("Event is full. No seats available.")


class AlreadyRegisteredError(ConflictError):
    def __init__(self, user_id: int, event_id: int):
        self.user_id = user_id
        self.event_id = event_id
        super().__init__("You are already registered for this event")


class AuthError(ServiceError):
    """Missing, invalid, expired or superseded credential."""
    status_code = 401


class InternalError(ServiceError):
    """Storage or unexpected failure. Details go to the log, not the client."""
    status_code = 500
