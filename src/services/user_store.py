"""Persistence of user records."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.user import User
from src.services.errors import ConstraintViolationError, RecordNotFoundError

logger = logging.getLogger(__name__)

# users.id is a 32-bit INTEGER column
MAX_USER_ID = 2**31 - 1


class UserStore:
    """CRUD over the users table, plus the single-slot refresh token."""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> list[User]:
        """Return every user in primary-key order."""
        return self.db.query(User).order_by(User.id).all()

    def get_by_id(self, user_id: int) -> User | None:
        """Get a user by id. Ids outside the column range match nobody."""
        if not 1 <= user_id <= MAX_USER_ID:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        return self.db.query(User).filter(User.email == email).first()

    def create(self, email: str, password_hash: str, name: str, age: int | None = None) -> User:
        """Insert a user whose password has already been hashed."""
        user = User(email=email, password=password_hash, name=name, age=age)
        self.db.add(user)
        self._commit(f"create user {email}")
        self.db.refresh(user)
        return user

    def update(self, user_id: int, fields: dict[str, Any]) -> User | None:
        """Apply a partial update. Returns None when the user does not exist."""
        user = self.get_by_id(user_id)
        if user is None:
            return None

        for key, value in fields.items():
            setattr(user, key, value)
        self._commit(f"update user {user_id}")
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        """Delete a user. Raises RecordNotFoundError for unknown ids."""
        user = self.get_by_id(user_id)
        if user is None:
            raise RecordNotFoundError(f"User {user_id} does not exist")

        self.db.delete(user)
        self._commit(f"delete user {user_id}")

    def set_refresh_token(self, user_id: int, refresh_token: str | None) -> None:
        """Overwrite the stored refresh token (None clears it)."""
        self.db.query(User).filter(User.id == user_id).update(
            {User.refresh_token: refresh_token}, synchronize_session="fetch"
        )
        self._commit(f"set refresh token for user {user_id}")

    def replace_refresh_token(self, user_id: int, current: str, new: str) -> bool:
        """Swap the refresh token only if the stored one is still ``current``.

        Returns False when another request already rotated or cleared it.
        """
        updated = (
            self.db.query(User)
            .filter(User.id == user_id, User.refresh_token == current)
            .update({User.refresh_token: new}, synchronize_session="fetch")
        )
        self._commit(f"rotate refresh token for user {user_id}")
        return updated == 1

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Constraint violation on {action}: {e.orig}")
            raise ConstraintViolationError(f"Could not {action}: constraint violated") from e
