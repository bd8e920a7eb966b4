"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.user import User


class UserUpdate(BaseModel):
    """Partial update of a user. Only fields that are sent are changed."""

    email: EmailStr | None = Field(None, max_length=255)
    name: str | None = Field(None, min_length=1, max_length=255)
    password: str | None = Field(None, min_length=1, max_length=72)
    age: int | None = Field(None, ge=0, le=150)


class PublicUser(BaseModel):
    """User fields that are safe to return to clients.

    ``password`` and ``refresh_token`` are never included. Every user
    payload leaving the API is built from this model.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    age: int | None
    created_at: datetime
    updated_at: datetime


def to_public(user: User | None) -> PublicUser | None:
    """Project a stored user onto its public fields."""
    if user is None:
        return None
    return PublicUser.model_validate(user)
