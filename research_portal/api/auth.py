"""Session login/logout and auth dependencies (require_authenticated, require_admin)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from research_portal.core.config import Settings
from research_portal.core.database import get_db
from research_portal.core.security import ADMIN_ROLE
from research_portal.core.session_store import SessionTeardownError
from research_portal.schemas.auth import (
    Identity,
    LoginRequest,
    MessageResponse,
    UserResponse,
    UsersListResponse,
)
from research_portal.services.access import (
    AuthorizationFailure,
    NotAuthenticatedError,
    check_authenticated,
    check_role,
)
from research_portal.services.auth import AuthenticationFailure, verify_credentials
from research_portal.services.session_binding import (
    SessionContext,
    bind,
    current_identity,
    unbind,
)
from research_portal.services.users import SqlUserRepository, UserRepository

logger = logging.getLogger(__name__)
router = APIRouter()

# One message for unknown user and wrong password, so usernames cannot be enumerated.
INVALID_LOGIN_MESSAGE = "Invalid username or password."


def get_session(request: Request) -> SessionContext:
    """Dependency: the SessionContext installed by SessionMiddleware."""
    ctx = getattr(request.state, "session", None)
    if ctx is None:
        raise RuntimeError("SessionMiddleware is not installed")
    return ctx


def get_app_settings(request: Request) -> Settings:
    """Dependency: the Settings the app was created with."""
    return request.app.state.settings


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    """Dependency: user lookups against the database."""
    return SqlUserRepository(db)


def require_authenticated(
    session: Annotated[SessionContext, Depends(get_session)],
) -> Identity:
    """Dependency: require a logged-in session and return its identity. Raises 401 otherwise."""
    try:
        return check_authenticated(session)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message) from e


def require_privileged(role: str = ADMIN_ROLE) -> Callable[[SessionContext], Identity]:
    """Build a dependency that requires the session identity to have `role`. Raises 403 otherwise."""

    def dependency(
        session: Annotated[SessionContext, Depends(get_session)],
    ) -> Identity:
        try:
            return check_role(session, role)
        except AuthorizationFailure as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e

    return dependency


require_admin = require_privileged(ADMIN_ROLE)


@router.post("/login", response_model=UserResponse)
def login(
    body: LoginRequest,
    users: Annotated[UserRepository, Depends(get_user_repository)],
    session: Annotated[SessionContext, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserResponse:
    """
    Authenticate with username and password and bind the user to the session.
    The session cookie is set on the response; send it back on later requests.
    """
    if not body.username or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required",
        )

    try:
        identity = verify_credentials(
            users,
            body.username,
            body.password,
            case_sensitive=settings.USERNAME_CASE_SENSITIVE,
        )
    except AuthenticationFailure as e:
        logger.info("Login failed", extra={"reason": e.reason})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_LOGIN_MESSAGE,
        ) from e

    bind(session, identity)
    logger.info("Login succeeded", extra={"user_id": identity.id, "role": identity.role})
    return UserResponse(user=identity)


@router.post("/logout", response_model=MessageResponse)
def logout(
    session: Annotated[SessionContext, Depends(get_session)],
) -> MessageResponse:
    """Destroy the session and clear the session cookie."""
    try:
        unbind(session)
    except SessionTeardownError as e:
        logger.exception("Logout failed: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to log out",
        ) from e
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(
    session: Annotated[SessionContext, Depends(get_session)],
) -> UserResponse:
    """Return the identity bound to the current session."""
    identity = current_identity(session)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return UserResponse(user=identity)


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[Identity, Depends(require_admin)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> UsersListResponse:
    """List all users (admin only). Hashes are never included."""
    return UsersListResponse(users=[Identity.model_validate(u) for u in users.list_users()])
