"""Access checks over session state. Read-only: they never modify the session."""

from research_portal.core.security import ADMIN_ROLE
from research_portal.schemas.auth import Identity
from research_portal.services.session_binding import SessionContext, current_identity


class NotAuthenticatedError(Exception):
    """No identity is bound to the session."""

    def __init__(self, message: str = "Unauthorized. Please log in.") -> None:
        self.message = message
        super().__init__(message)


class AuthorizationFailure(Exception):
    """Session is anonymous or its identity lacks the required role."""

    def __init__(self, message: str, role: str) -> None:
        self.message = message
        self.role = role
        super().__init__(message)


def check_authenticated(ctx: SessionContext) -> Identity:
    """Return the bound identity or raise NotAuthenticatedError."""
    identity = current_identity(ctx)
    if identity is None:
        raise NotAuthenticatedError()
    return identity


def check_role(ctx: SessionContext, role: str = ADMIN_ROLE) -> Identity:
    """Return the bound identity if its role equals `role`; anonymous and other roles are rejected alike."""
    identity = current_identity(ctx)
    if identity is None or identity.role != role:
        raise AuthorizationFailure(
            f"Forbidden. {role.capitalize()} access required.",
            role=role,
        )
    return identity
