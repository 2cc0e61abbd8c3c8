"""Credential verification: username/password to a sanitized Identity."""

import logging

from research_portal.core.security import dummy_password_hash, verify_password
from research_portal.schemas.auth import Identity
from research_portal.services.users import UserRepository

logger = logging.getLogger(__name__)


class AuthenticationFailure(Exception):
    """
    Base for failed logins. `reason` distinguishes the cause for logs;
    the HTTP layer must never reveal it to the client.
    """

    reason = "authentication_failed"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UserNotFoundError(AuthenticationFailure):
    """No user record for the given username."""

    reason = "user_not_found"


class InvalidCredentialsError(AuthenticationFailure):
    """User exists but the password does not match the stored hash."""

    reason = "invalid_credentials"


def verify_credentials(
    users: UserRepository,
    username: str,
    password: str,
    *,
    case_sensitive: bool = True,
) -> Identity:
    """
    Check username/password against the stored user record.

    Returns the user's Identity (no password hash). Raises UserNotFoundError or
    InvalidCredentialsError; lookup failures propagate as UserLookupError.
    Read-only: no lockout or attempt counters.
    """
    user = users.get_by_username(username, case_sensitive=case_sensitive)
    if user is None:
        # Same bcrypt cost as a real check so timing does not reveal unknown usernames.
        verify_password(password, dummy_password_hash())
        raise UserNotFoundError("User not found")
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid password")
    return Identity.model_validate(user)
