"""Bind, unbind and read the authenticated identity of a server-side session."""

import logging
from typing import Any

from pydantic import ValidationError

from research_portal.core.security import new_session_token
from research_portal.core.session_store import (
    SessionStore,
    SessionStoreError,
    SessionTeardownError,
)
from research_portal.schemas.auth import Identity

logger = logging.getLogger(__name__)

# Key under which the identity is stored in the session payload.
SESSION_USER_KEY = "user"


class SessionContext:
    """
    Per-request handle to server-side session state.

    `sid` is None while the request has no live session. `cleared` tells the
    middleware to drop the client's cookie; a changed `sid` tells it to issue one.
    """

    def __init__(
        self,
        store: SessionStore,
        max_age_seconds: int,
        sid: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.store = store
        self.max_age_seconds = max_age_seconds
        self.sid = sid
        self.data: dict[str, Any] = data or {}
        self.cleared = False


def bind(ctx: SessionContext, identity: Identity) -> None:
    """
    Attach identity to the session, replacing any previous binding.

    The session is re-issued under a fresh token and the old record discarded,
    so a token known before login never becomes authenticated.
    Raises SessionStoreError if the store is unavailable.
    """
    if ctx.sid is not None:
        ctx.store.destroy(ctx.sid)
        ctx.sid = None
        ctx.data = {}
    new_sid = new_session_token()
    data = {SESSION_USER_KEY: identity.model_dump()}
    ctx.store.save(new_sid, data, ctx.max_age_seconds)
    ctx.sid = new_sid
    ctx.data = data
    ctx.cleared = False


def unbind(ctx: SessionContext) -> None:
    """Destroy the session and mark its cookie for removal. Raises SessionTeardownError."""
    if ctx.sid is not None:
        try:
            ctx.store.destroy(ctx.sid)
        except SessionStoreError as e:
            raise SessionTeardownError("Failed to destroy session") from e
    ctx.sid = None
    ctx.data = {}
    ctx.cleared = True


def current_identity(ctx: SessionContext) -> Identity | None:
    """Return the bound identity, or None for an anonymous session."""
    raw = ctx.data.get(SESSION_USER_KEY)
    if raw is None:
        return None
    try:
        return Identity.model_validate(raw)
    except ValidationError:
        logger.warning("Ignoring malformed session identity", extra={"sid_present": ctx.sid is not None})
        return None
