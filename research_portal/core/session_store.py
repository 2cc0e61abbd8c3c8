"""Server-side session storage backends keyed by the opaque cookie token."""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from research_portal.core.errors import InfrastructureError
from research_portal.models import SessionRecord

logger = logging.getLogger(__name__)


class SessionStoreError(InfrastructureError):
    """Raised when the session backend cannot read or write a session."""


class SessionTeardownError(SessionStoreError):
    """Raised when a session cannot be destroyed (logout)."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStore(Protocol):
    """Storage contract used by the session middleware and binding functions."""

    def load(self, sid: str) -> dict[str, Any] | None:
        """Return the session payload, or None when unknown or expired."""
        ...

    def save(self, sid: str, data: dict[str, Any], max_age_seconds: int) -> None:
        """Create or overwrite the session, expiring max_age_seconds from now."""
        ...

    def destroy(self, sid: str) -> None:
        """Delete the session. Destroying an unknown sid is not an error."""
        ...


class InMemorySessionStore:
    """
    Process-local store. Sessions are lost on restart and not shared between workers.

    Expired entries are dropped when read, and `save` sweeps all expired entries
    at most once per `prune_interval_seconds`, so abandoned sessions do not pile up.
    Payloads are copied in and out so callers never share a mutable dict with the store.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        prune_interval_seconds: int = 60,
    ) -> None:
        self._clock = clock
        self._prune_interval = timedelta(seconds=prune_interval_seconds)
        self._lock = threading.Lock()
        self._sessions: dict[str, tuple[datetime, dict[str, Any]]] = {}
        self._last_prune = clock()

    def load(self, sid: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            expires_at, data = entry
            if expires_at <= self._clock():
                del self._sessions[sid]
                return None
            return copy.deepcopy(data)

    def save(self, sid: str, data: dict[str, Any], max_age_seconds: int) -> None:
        now = self._clock()
        expires_at = now + timedelta(seconds=max_age_seconds)
        with self._lock:
            if now - self._last_prune >= self._prune_interval:
                self._prune_locked(now)
            self._sessions[sid] = (expires_at, copy.deepcopy(data))

    def destroy(self, sid: str) -> None:
        with self._lock:
            self._sessions.pop(sid, None)

    def prune_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            return self._prune_locked(self._clock())

    def _prune_locked(self, now: datetime) -> int:
        expired = [sid for sid, (exp, _) in self._sessions.items() if exp <= now]
        for sid in expired:
            del self._sessions[sid]
        self._last_prune = now
        if expired:
            logger.debug("Pruned expired in-memory sessions", extra={"sessions_deleted": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class DatabaseSessionStore:
    """Sessions persisted in the `sessions` table; survives restarts and is shared by workers."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def load(self, sid: str) -> dict[str, Any] | None:
        db = self._session_factory()
        try:
            record = db.get(SessionRecord, sid)
            if record is None:
                return None
            if record.expires_at <= self._clock():
                db.delete(record)
                db.commit()
                return None
            return dict(record.data or {})
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Session load failed", extra={"error": str(e)[:200]})
            raise SessionStoreError("Session store unavailable") from e
        finally:
            db.close()

    def save(self, sid: str, data: dict[str, Any], max_age_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=max_age_seconds)
        db = self._session_factory()
        try:
            db.merge(SessionRecord(sid=sid, data=data, expires_at=expires_at))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Session save failed", extra={"error": str(e)[:200]})
            raise SessionStoreError("Session store unavailable") from e
        finally:
            db.close()

    def destroy(self, sid: str) -> None:
        db = self._session_factory()
        try:
            db.query(SessionRecord).filter(SessionRecord.sid == sid).delete(
                synchronize_session=False
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Session destroy failed", extra={"error": str(e)[:200]})
            raise SessionStoreError("Session store unavailable") from e
        finally:
            db.close()
