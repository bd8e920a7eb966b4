"""Domain and store errors raised by the service layer."""


class ConflictError(Exception):
    """A resource with the same unique key already exists."""


class UnauthorizedError(Exception):
    """Credentials or tokens were missing, wrong, expired, or rotated out."""


class TokenError(Exception):
    """A token could not be verified."""


class InvalidTokenError(TokenError):
    """Bad signature, malformed token, or missing subject."""


class TokenExpiredError(TokenError):
    """The token is past its expiry."""


class StoreError(Exception):
    """A write against the user store failed."""


class RecordNotFoundError(StoreError):
    """The row targeted by a write does not exist."""


class ConstraintViolationError(StoreError):
    """A write broke a database constraint, e.g. a duplicate email."""
