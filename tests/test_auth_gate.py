"""
Tests for the auth gate.

These tests prove:
- Passwords are stored hashed and checked on login
- Only the most recently issued token authenticates
- Bad input is refused with field-level validation errors
"""
from datetime import timedelta

import jwt
import pytest

from eventhub import config
from eventhub.models.domain import User, UserSession
from eventhub.services.auth import AuthGate, create_access_token
from eventhub.services.errors import AuthError, EmailTakenError, ValidationError


@pytest.fixture
def gate(db_session):
    return AuthGate(db_session)


@pytest.fixture
def signed_up(gate):
    user, token = gate.signup("Grace Hopper", "grace@example.com", "cobol-rules")
    return user, token


class TestSignup:
    def test_signup_stores_hashed_password(self, db_session, signed_up):
        user, _ = signed_up

        stored = db_session.get(User, user.id)
        assert stored.email == "grace@example.com"
        assert stored.password_hash != "cobol-rules"
        assert stored.password_hash.startswith("$2")

    def test_signup_issues_working_token(self, gate, signed_up):
        user, token = signed_up

        assert gate.authenticate(token) == user.id

    def test_duplicate_email_is_refused(self, gate, signed_up):
        with pytest.raises(EmailTakenError) as exc_info:
            gate.signup("Another Grace", "grace@example.com", "different-pass")

        assert exc_info.value.status_code == 400
        assert exc_info.value.fields == ["email"]

    def test_missing_fields_are_reported(self, gate):
        with pytest.raises(ValidationError) as exc_info:
            gate.signup("", "someone@example.com", "")

        assert set(exc_info.value.fields) == {"name", "password"}

    def test_short_password_is_refused(self, gate):
        with pytest.raises(ValidationError) as exc_info:
            gate.signup("Shorty", "short@example.com", "abc")

        assert f"at least {config.PASSWORD_MIN_LENGTH}" in str(exc_info.value)

    def test_password_longer_than_bcrypt_limit_is_refused(self, gate):
        with pytest.raises(ValidationError):
            gate.signup("Verbose", "long@example.com", "x" * 73)

    @pytest.mark.parametrize("email", ["plainaddress", "no-at.example.com", "user@nodot", "two words@example.com"])
    def test_malformed_email_is_refused(self, gate, email):
        with pytest.raises(ValidationError) as exc_info:
            gate.signup("Someone", email, "long-enough")

        assert exc_info.value.fields == ["email"]


class TestLogin:
    def test_login_with_correct_password(self, gate, signed_up):
        user, _ = signed_up

        logged_in, token = gate.login("grace@example.com", "cobol-rules")

        assert logged_in.id == user.id
        assert gate.authenticate(token) == user.id

    def test_wrong_password_is_refused(self, gate, signed_up):
        with pytest.raises(AuthError) as exc_info:
            gate.login("grace@example.com", "wrong-password")

        assert exc_info.value.status_code == 401
        assert "Invalid email or password" in str(exc_info.value)

    def test_unknown_email_is_refused_with_same_message(self, gate):
        with pytest.raises(AuthError) as exc_info:
            gate.login("nobody@example.com", "whatever")

        assert "Invalid email or password" in str(exc_info.value)

    def test_password_over_bcrypt_limit_is_refused_as_invalid(self, gate, signed_up):
        with pytest.raises(AuthError) as exc_info:
            gate.login("grace@example.com", "x" * 80)

        assert exc_info.value.status_code == 401
        assert "Invalid email or password" in str(exc_info.value)

    def test_new_login_invalidates_previous_token(self, db_session, gate, signed_up):
        """
        INVARIANT: One live credential per identity.
        """
        user, first_token = signed_up

        _, second_token = gate.login("grace@example.com", "cobol-rules")

        assert second_token != first_token
        assert gate.authenticate(second_token) == user.id
        with pytest.raises(AuthError) as exc_info:
            gate.authenticate(first_token)
        assert exc_info.value.status_code == 403
        assert db_session.query(UserSession).filter(UserSession.user_id == user.id).count() == 1


class TestAuthenticate:
    def test_missing_token_is_401(self, gate):
        with pytest.raises(AuthError) as exc_info:
            gate.authenticate(None)

        assert exc_info.value.status_code == 401

    def test_garbage_token_is_403(self, gate):
        with pytest.raises(AuthError) as exc_info:
            gate.authenticate("not.a.jwt")

        assert exc_info.value.status_code == 403

    def test_token_signed_with_other_secret_is_403(self, gate, signed_up):
        user, _ = signed_up
        forged = jwt.encode({"sub": str(user.id)}, "some-other-secret", algorithm="HS256")

        with pytest.raises(AuthError) as exc_info:
            gate.authenticate(forged)

        assert exc_info.value.status_code == 403

    def test_expired_token_is_403(self, gate, signed_up):
        user, _ = signed_up
        expired = create_access_token(user, expires_delta=timedelta(seconds=-1))

        with pytest.raises(AuthError) as exc_info:
            gate.authenticate(expired)

        assert "expired" in str(exc_info.value).lower()

    def test_valid_but_unissued_token_is_403(self, gate, signed_up):
        """A correctly signed token that is not the live session does not authenticate."""
        user, _ = signed_up
        stray = create_access_token(user)

        with pytest.raises(AuthError) as exc_info:
            gate.authenticate(stray)

        assert "Session expired" in str(exc_info.value)

    def test_logout_revokes_token(self, gate, signed_up):
        user, token = signed_up

        gate.logout(user.id)

        with pytest.raises(AuthError):
            gate.authenticate(token)
