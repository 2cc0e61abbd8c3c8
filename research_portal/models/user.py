"""ORM model for portal users (login and role-based access control)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from research_portal.models.base import Base


class User(Base):
    """
    User account for session authentication and role-based access control.

    role: 'admin', 'user' or a job-title role such as 'Management'.
    password_hash: bcrypt hash, or a legacy unsalted SHA-256 hex digest.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    role = Column(String(64), nullable=False, default="user")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
