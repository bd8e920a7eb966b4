"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=1, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)
    age: int | None = Field(None, ge=0, le=150)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=72)


class SessionUser(BaseModel):
    """User summary returned alongside a new session."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str


class AuthResponse(BaseModel):
    """Register/login response; the tokens travel in cookies."""

    user: SessionUser
    message: str


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


class ProfileResponse(BaseModel):
    """Identity resolved from the access token."""

    user_id: int
    email: str
