"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from research_portal.api import router as api_router
from research_portal.core.config import Settings, get_settings
from research_portal.core.errors import InfrastructureError
from research_portal.core.session_middleware import SessionMiddleware
from research_portal.core.session_store import (
    DatabaseSessionStore,
    InMemorySessionStore,
    SessionStore,
)

logger = logging.getLogger(__name__)


def build_session_store(settings: Settings) -> SessionStore:
    """Session backend selected by SESSION_STORE."""
    if settings.SESSION_STORE == "database":
        from research_portal.core.database import SessionLocal

        return DatabaseSessionStore(SessionLocal)
    return InMemorySessionStore()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": "Invalid request body"})


async def infrastructure_exception_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    logger.error(
        "Infrastructure failure",
        extra={"path": request.url.path, "error_type": type(exc).__name__, "reason": exc.message[:500]},
    )
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    settings: Settings | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Build the API app. The session store is injected so tests can use an in-memory one."""
    if settings is None:
        settings = get_settings()
    if session_store is None:
        session_store = build_session_store(settings)

    app = FastAPI(
        title="Research Portal API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.session_store = session_store

    app.add_middleware(SessionMiddleware, store=session_store, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_api_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith(settings.API_PREFIX):
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                "%s %s %s in %sms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(InfrastructureError, infrastructure_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Research Portal API"}

    return app


app = create_app()
