"""Request dependencies resolving the caller's identity through the auth gate."""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.services.auth import AuthGate
from eventhub.services.errors import AuthError

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> int:
    """Require a live bearer token: 401 when absent, 403 when invalid or superseded."""
    if credentials is None:
        raise AuthError("No authorization header provided")
    return AuthGate(db).authenticate(credentials.credentials)


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[int]:
    """Identity for public routes: a bad or missing token just means anonymous."""
    if credentials is None:
        return None
    try:
        return AuthGate(db).authenticate(credentials.credentials)
    except AuthError:
        return None
