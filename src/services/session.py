"""Session lifecycle: register, login, refresh, logout."""

import asyncio
import logging
from dataclasses import dataclass

from src.models.user import User
from src.services.auth import PasswordHasher, TokenPair, TokenService
from src.services.errors import (
    ConflictError,
    ConstraintViolationError,
    TokenError,
    UnauthorizedError,
)
from src.services.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    """A user together with the token pair just issued for them."""

    user: User
    tokens: TokenPair


class SessionManager:
    """Composes the store, hasher and token service into session operations.

    Each user holds one refresh token at a time. Issuing a new pair (login,
    register, refresh) overwrites it, so older refresh tokens stop working.
    """

    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    async def register(
        self, email: str, password: str, name: str, age: int | None = None
    ) -> AuthSession:
        """Create a user and open a session for them."""
        if self.store.get_by_email(email) is not None:
            raise ConflictError("Email already registered")

        # bcrypt is CPU-bound; keep it off the event loop
        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        try:
            user = self.store.create(email=email, password_hash=password_hash, name=name, age=age)
        except ConstraintViolationError as e:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("Email already registered") from e

        logger.info(f"Registered user {user.id}")
        return self._open_session(user)

    async def login(self, email: str, password: str) -> AuthSession:
        """Check credentials and open a new session."""
        user = self.store.get_by_email(email)
        if user is None:
            logger.warning("Login rejected: unknown email")
            raise UnauthorizedError("Invalid credentials")

        if not await asyncio.to_thread(self.hasher.verify, password, user.password):
            logger.warning(f"Login rejected: wrong password for user {user.id}")
            raise UnauthorizedError("Invalid credentials")

        logger.info(f"User {user.id} logged in")
        return self._open_session(user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair, rotating the stored token."""
        try:
            claims = self.tokens.verify(refresh_token)
        except TokenError as e:
            logger.warning(f"Refresh rejected: {e}")
            raise UnauthorizedError("Invalid refresh token") from e

        user = self.store.get_by_id(claims.user_id)
        if user is None or user.refresh_token != refresh_token:
            logger.warning(f"Refresh rejected: token not current for user {claims.user_id}")
            raise UnauthorizedError("Invalid refresh token")

        pair = self.tokens.issue_pair(user.id, user.email)
        if not self.store.replace_refresh_token(user.id, refresh_token, pair.refresh_token):
            logger.warning(f"Refresh rejected: concurrent rotation for user {user.id}")
            raise UnauthorizedError("Invalid refresh token")

        logger.info(f"Rotated refresh token for user {user.id}")
        return pair

    async def logout(self, user_id: int) -> None:
        """Forget the stored refresh token. Safe to call repeatedly."""
        self.store.set_refresh_token(user_id, None)
        logger.info(f"User {user_id} logged out")

    def _open_session(self, user: User) -> AuthSession:
        pair = self.tokens.issue_pair(user.id, user.email)
        self.store.set_refresh_token(user.id, pair.refresh_token)
        return AuthSession(user=user, tokens=pair)
