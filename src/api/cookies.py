"""Cookie transport for session tokens."""

from datetime import UTC, datetime

from fastapi import Response

from src.config import Settings
from src.services.auth import TokenPair

ACCESS_TOKEN_COOKIE = "access_token"  # noqa: S105
REFRESH_TOKEN_COOKIE = "refresh_token"  # noqa: S105

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    """Attach the access and refresh tokens as HTTP-only cookies."""
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Overwrite both token cookies with empty, already-expired values."""
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.set_cookie(
            name,
            "",
            expires=EPOCH,
            httponly=True,
            secure=settings.is_production,
            samesite="strict",
        )
