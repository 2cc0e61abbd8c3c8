"""SQLAlchemy ORM models."""

from research_portal.models.base import Base
from research_portal.models.session import SessionRecord
from research_portal.models.user import User

__all__ = ["Base", "SessionRecord", "User"]
