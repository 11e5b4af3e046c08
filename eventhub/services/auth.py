"""
Auth gate - signup, login, logout and bearer-token authentication.

Policy: one live credential per identity. Issuing a token replaces the user's
previous session row, so any earlier token stops authenticating.
"""
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
import jwt
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventhub import config
from eventhub.models.domain import User, UserSession
from eventhub.services.errors import AuthError, ConflictError, EmailTakenError, ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for ``user``.

    The random ``jti`` keeps two tokens issued within the same second distinct,
    which the one-session-per-user check relies on.
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(days=config.JWT_EXPIRE_DAYS))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": issued_at,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry. Raises AuthError (403) when either fails."""
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        logger.info(f"JWT verification failed: {exc}")
        raise AuthError("Invalid or expired token", status_code=403) from exc


class AuthGate:
    """Issues and validates session credentials."""

    def __init__(self, db: Session):
        self.db = db

    def signup(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """Create an account and sign it in."""
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email or not password:
            missing = [label for label, value in (("name", name), ("email", email), ("password", password)) if not value]
            raise ValidationError("Name, email, and password are required", fields=missing)
        self._validate_password(password)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format", fields=["email"])

        if self.db.query(User).filter(User.email == email).first() is not None:
            raise EmailTakenError(email)

        user = User(name=name, email=email, password_hash=hash_password(password))
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise EmailTakenError(email) from exc
        token = self._issue_session(user)
        self.db.refresh(user)

        logger.info(f"User {user.id} signed up")
        return user, token

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """Check credentials and issue a fresh token, revoking the previous one."""
        if not email or not password:
            raise ValidationError("Email and password are required", fields=["email", "password"])

        # Nothing longer than bcrypt's limit can match a stored hash
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise AuthError("Invalid email or password")

        user = self.db.query(User).filter(User.email == email.strip()).first()
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")

        token = self._issue_session(user)
        logger.info(f"User {user.id} logged in")
        return user, token

    def logout(self, user_id: int) -> None:
        self.db.query(UserSession).filter(UserSession.user_id == user_id).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"User {user_id} logged out")

    def authenticate(self, token: Optional[str]) -> int:
        """
        Resolve a bearer token to a user id.

        - missing token -> AuthError 401
        - bad signature / expired -> AuthError 403
        - token is not the user's live session -> AuthError 403
        """
        if not token:
            raise AuthError("No token provided")

        payload = decode_access_token(token)
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthError("Invalid or expired token", status_code=403) from exc

        session = self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
            UserSession.token == token
        ).first()
        if session is None:
            logger.info(f"Session not found for user {user_id}")
            raise AuthError("Session expired. Please login again.", status_code=403)

        return user_id

    def _issue_session(self, user: User) -> str:
        """Replace the user's session with a new token in a single transaction."""
        token = create_access_token(user)
        self.db.query(UserSession).filter(UserSession.user_id == user.id).delete(synchronize_session=False)
        self.db.flush()
        self.db.add(UserSession(user_id=user.id, token=token))
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Another login for the same user committed its session first
            self.db.rollback()
            raise ConflictError("Another login for this account is in progress. Please retry.") from exc
        return token

    def _validate_password(self, password: str) -> None:
        if len(password) < config.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters",
                fields=["password"]
            )
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes",
                fields=["password"]
            )
