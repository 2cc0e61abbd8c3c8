"""ORM model for server-side session state keyed by the cookie token."""

from sqlalchemy import JSON, Column, DateTime, String

from research_portal.models.base import Base


class SessionRecord(Base):
    """One row per live session; `data` holds the bound identity under "user"."""

    __tablename__ = "sessions"

    sid = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
