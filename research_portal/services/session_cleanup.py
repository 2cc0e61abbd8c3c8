"""Expired-session cleanup: delete `sessions` rows past their expiry."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from research_portal.models import SessionRecord

if TYPE_CHECKING:
    from research_portal.core.config import Settings

logger = logging.getLogger(__name__)


def prune_expired_sessions(session: Session, settings: "Settings") -> int:
    """
    Delete sessions whose expires_at has passed. Returns the number deleted.

    Only meaningful for SESSION_STORE=database; the in-memory store prunes on read.
    Idempotent: safe to run repeatedly.
    """
    if settings.SESSION_STORE != "database":
        logger.info(
            "Session store is %s, not database; skipping cleanup.",
            settings.SESSION_STORE,
        )
        return 0

    now = datetime.now(timezone.utc)
    deleted_count = (
        session.query(SessionRecord)
        .filter(SessionRecord.expires_at <= now)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Session cleanup: now=%s, sessions_deleted=%s",
            now.isoformat(),
            deleted_count,
        )
    return deleted_count
