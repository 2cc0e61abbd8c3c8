"""Cookie transport for server-side sessions: load before the handler, issue or clear after."""

import logging

from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from research_portal.core.config import Settings
from research_portal.core.session_store import SessionStore, SessionStoreError
from research_portal.schemas.auth import Identity
from research_portal.services.session_binding import SessionContext, bind, current_identity

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Expose a SessionContext on request.state.session for every request.

    The store is injected, not global, so tests can pass an in-memory store.
    """

    def __init__(self, app: ASGIApp, store: SessionStore, settings: Settings) -> None:
        super().__init__(app)
        self.store = store
        self.settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cookie_name = self.settings.SESSION_COOKIE_NAME
        incoming_sid = request.cookies.get(cookie_name)
        data = None
        try:
            if incoming_sid:
                data = await run_in_threadpool(self.store.load, incoming_sid)
            ctx = SessionContext(
                self.store,
                self.settings.SESSION_MAX_AGE_SECONDS,
                sid=incoming_sid if data is not None else None,
                data=data,
            )
            if self._should_auto_login(request, ctx):
                await run_in_threadpool(bind, ctx, self._dev_identity())
        except SessionStoreError:
            logger.exception("Session store unavailable while loading session")
            return JSONResponse(status_code=500, content={"message": "Internal server error"})

        request.state.session = ctx
        response = await call_next(request)

        if ctx.cleared or (incoming_sid and ctx.sid is None):
            response.delete_cookie(
                cookie_name,
                path="/",
                secure=self.settings.session_cookie_secure,
                httponly=True,
                samesite="lax",
            )
        elif ctx.sid is not None and ctx.sid != incoming_sid:
            response.set_cookie(
                cookie_name,
                ctx.sid,
                max_age=self.settings.SESSION_MAX_AGE_SECONDS,
                path="/",
                secure=self.settings.session_cookie_secure,
                httponly=True,
                samesite="lax",
            )
        return response

    def _should_auto_login(self, request: Request, ctx: SessionContext) -> bool:
        return (
            self.settings.DEV_AUTO_LOGIN
            and self.settings.APP_ENV == "dev"
            and request.url.path.startswith(self.settings.API_PREFIX)
            and current_identity(ctx) is None
        )

    def _dev_identity(self) -> Identity:
        return Identity(
            id=self.settings.DEV_USER_ID,
            username=self.settings.DEV_USER_USERNAME,
            name=self.settings.DEV_USER_NAME,
            email=self.settings.DEV_USER_EMAIL,
            role=self.settings.DEV_USER_ROLE,
        )
