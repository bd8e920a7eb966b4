"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import (
    AuthResponse,
    MessageResponse,
    ProfileResponse,
    SessionUser,
    UserLogin,
    UserRegister,
)
from src.schemas.user import PublicUser, UserUpdate, to_public

__all__ = [
    "UserRegister",
    "UserLogin",
    "SessionUser",
    "AuthResponse",
    "MessageResponse",
    "ProfileResponse",
    "PublicUser",
    "UserUpdate",
    "to_public",
]
