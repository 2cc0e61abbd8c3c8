"""Read access to persisted user records."""

import logging
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from research_portal.core.errors import InfrastructureError
from research_portal.models import User

logger = logging.getLogger(__name__)


class UserLookupError(InfrastructureError):
    """Raised when the users table cannot be queried."""


class UserRepository(Protocol):
    """Lookup contract consumed by the credential verifier and admin routes."""

    def get_by_username(self, username: str, *, case_sensitive: bool = True) -> User | None:
        ...

    def list_users(self) -> list[User]:
        ...


class SqlUserRepository:
    """UserRepository backed by the `users` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_username(self, username: str, *, case_sensitive: bool = True) -> User | None:
        if case_sensitive:
            condition = User.username == username
        else:
            condition = func.lower(User.username) == username.lower()
        try:
            return self.db.query(User).filter(condition).order_by(User.id).first()
        except SQLAlchemyError as e:
            logger.error("User lookup failed", extra={"error": str(e)[:200]})
            raise UserLookupError("User lookup failed") from e

    def list_users(self) -> list[User]:
        try:
            return self.db.query(User).order_by(User.id).all()
        except SQLAlchemyError as e:
            logger.error("User listing failed", extra={"error": str(e)[:200]})
            raise UserLookupError("User listing failed") from e
