"""FastAPI dependencies for authentication and database."""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.api.cookies import ACCESS_TOKEN_COOKIE
from src.config import Settings, get_settings
from src.database import get_db
from src.services.auth import PasswordHasher, TokenService
from src.services.errors import TokenError
from src.services.session import SessionManager
from src.services.user_store import UserStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentIdentity:
    """Identity resolved from a verified access token."""

    user_id: int
    email: str


def get_user_store(db: Annotated[Session, Depends(get_db)]) -> UserStore:
    """Get user store bound to the request's session."""
    return UserStore(db)


def get_password_hasher(settings: Annotated[Settings, Depends(get_settings)]) -> PasswordHasher:
    """Get password hasher configured from settings."""
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_token_service(settings: Annotated[Settings, Depends(get_settings)]) -> TokenService:
    """Get token service configured from settings."""
    return TokenService.from_settings(settings)


def get_session_manager(
    store: Annotated[UserStore, Depends(get_user_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> SessionManager:
    """Get session manager with dependencies."""
    return SessionManager(store, hasher, tokens)


def unauthorized(detail: str) -> HTTPException:
    """Build a 401 response error."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    """Find the access token: cookie first, then the Bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> CurrentIdentity:
    """Get the identity of the caller from their access token."""
    token = extract_access_token(request, credentials)
    if not token:
        raise unauthorized("Not authenticated")

    try:
        claims = tokens.verify(token)
    except TokenError as e:
        logger.warning(f"Rejected access token: {e}")
        raise unauthorized(str(e)) from e

    if store.get_by_id(claims.user_id) is None:
        raise unauthorized("User not found")

    return CurrentIdentity(user_id=claims.user_id, email=claims.email)
