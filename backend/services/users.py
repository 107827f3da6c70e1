"""User directory: persistence operations over user records."""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core.errors import DuplicateEmailError
from backend.database import get_db
from backend.models.user import User, UserRole

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "role")


class UserDirectory:
    """CRUD over ``users`` bound to one request-scoped session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        normalized = email.strip().lower()
        return self.db.execute(
            select(User).where(func.lower(User.email) == normalized)
        ).scalar_one_or_none()

    def email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        existing = self.get_by_email(email)
        return existing is not None and existing.id != exclude_id

    def list_all(self) -> list[User]:
        return list(self.db.execute(select(User).order_by(User.id)).scalars())

    def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Insert a user; a concurrent duplicate email surfaces as DuplicateEmailError."""
        now = datetime.now(timezone.utc)
        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} created")
        return user

    def update(self, user: User, changes: dict[str, Any]) -> User:
        """Apply a partial update and refresh ``updated_at``."""
        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                raise ValueError(f"Field {field!r} cannot be updated")
            if field == "email":
                value = value.strip().lower()
            setattr(user, field, value)
        user.updated_at = datetime.now(timezone.utc)
        self._commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated ({', '.join(sorted(changes))})")
        return user

    def delete(self, user: User) -> None:
        user_id = user.id
        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user_id} deleted")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # The unique index on email is the only constraint a valid payload can violate
            raise DuplicateEmailError() from exc


def get_user_directory(db: Session = Depends(get_db)) -> UserDirectory:
    """Dependency providing a directory bound to the request's session."""
    return UserDirectory(db)
