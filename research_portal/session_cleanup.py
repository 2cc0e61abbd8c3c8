"""Delete expired rows from the `sessions` table: `python -m research_portal.session_cleanup`."""

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from research_portal.core.config import get_settings
from research_portal.core.database import SessionLocal
from research_portal.services.session_cleanup import prune_expired_sessions

logger = logging.getLogger("research_portal.session_cleanup")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    db = SessionLocal()
    try:
        deleted = prune_expired_sessions(db, get_settings())
    except SQLAlchemyError:
        logger.exception("Session cleanup failed")
        return 1
    finally:
        db.close()
    logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
