"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.api.cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from src.api.dependencies import (
    CurrentIdentity,
    get_current_identity,
    get_session_manager,
    unauthorized,
)
from src.config import Settings, get_settings
from src.schemas.auth import (
    AuthResponse,
    MessageResponse,
    ProfileResponse,
    SessionUser,
    UserLogin,
    UserRegister,
)
from src.services.errors import ConflictError, UnauthorizedError
from src.services.session import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Register a new user and start a cookie session."""
    try:
        session = await sessions.register(
            user_data.email, user_data.password, user_data.name, user_data.age
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    set_auth_cookies(response, session.tokens, settings)
    return AuthResponse(
        user=SessionUser.model_validate(session.user),
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Login with email and password."""
    try:
        session = await sessions.login(credentials.email, credentials.password)
    except UnauthorizedError as e:
        raise unauthorized(str(e)) from e

    set_auth_cookies(response, session.tokens, settings)
    return AuthResponse(
        user=SessionUser.model_validate(session.user),
        message="Login successful",
    )


@router.post("/refresh", response_model=MessageResponse)
async def refresh(
    request: Request,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Exchange the refresh token cookie for a new token pair."""
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        raise unauthorized("Refresh token not found")

    try:
        tokens = await sessions.refresh(refresh_token)
    except UnauthorizedError as e:
        raise unauthorized(str(e)) from e

    set_auth_cookies(response, tokens, settings)
    return MessageResponse(message="Tokens refreshed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    identity: Annotated[CurrentIdentity, Depends(get_current_identity)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Logout: drop the stored refresh token and clear the cookies."""
    await sessions.logout(identity.user_id)
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    identity: Annotated[CurrentIdentity, Depends(get_current_identity)],
):
    """Get the identity carried by the access token."""
    return ProfileResponse(user_id=identity.user_id, email=identity.email)
