"""Password hashing and JWT issue/verification."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from src.config import Settings
from src.services.errors import InvalidTokenError, TokenExpiredError


class PasswordHasher:
    """Salted one-way password hashing (bcrypt)."""

    def __init__(self, rounds: int = 10):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        """Hash a password."""
        return self.pwd_context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            # Stored value is not a recognisable hash
            return False


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by access and refresh tokens."""

    user_id: int
    email: str


@dataclass(frozen=True)
class TokenPair:
    """A freshly issued access/refresh token pair."""

    access_token: str
    refresh_token: str


class TokenService:
    """Signs and verifies JWTs.

    Access and refresh tokens share the secret, algorithm and claim shape
    (``sub`` + ``email``); only their expiry differs. Each token also gets a
    random ``jti`` so two tokens minted in the same second are never equal.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        """Build a token service from application settings."""
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    def issue(self, claims: TokenClaims, ttl: timedelta) -> str:
        """Create a signed token for ``claims`` that expires ``ttl`` from now."""
        now = datetime.now(UTC)
        to_encode = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "iat": now,
            "exp": now + ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def issue_access(self, user_id: int, email: str) -> str:
        """Create a short-lived access token."""
        return self.issue(TokenClaims(user_id=user_id, email=email), self.access_ttl)

    def issue_refresh(self, user_id: int, email: str) -> str:
        """Create a long-lived refresh token."""
        return self.issue(TokenClaims(user_id=user_id, email=email), self.refresh_ttl)

    def issue_pair(self, user_id: int, email: str) -> TokenPair:
        """Create an access and a refresh token for the same identity."""
        return TokenPair(
            access_token=self.issue_access(user_id, email),
            refresh_token=self.issue_refresh(user_id, email),
        )

    def verify(self, token: str) -> TokenClaims:
        """Validate signature and expiry and return the embedded identity.

        Raises:
            TokenExpiredError: the token is past its ``exp``.
            InvalidTokenError: bad signature, malformed token or claims.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError("Invalid token") from e

        subject = payload.get("sub")
        email = payload.get("email")
        if subject is None or email is None:
            raise InvalidTokenError("Invalid token")
        try:
            user_id = int(subject)
        except ValueError as e:
            raise InvalidTokenError("Invalid token") from e

        return TokenClaims(user_id=user_id, email=email)
