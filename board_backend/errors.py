"""Domain error kinds shared by services and the HTTP layer.

Services raise these exceptions; the API maps ``kind`` to a status code in a
single exception handler. Nothing below the API layer knows about HTTP.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of domain failures."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class BoardError(Exception):
    """Base class for all domain errors.

    Attributes:
        kind: Error classification used for reclassification and status mapping
        message: Client-safe message
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(BoardError):
    """Input that passed schema validation but cannot be processed."""

    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(BoardError):
    """Bad credentials or an invalid, expired, revoked or missing token."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(BoardError):
    """A looked-up record does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class ConflictError(BoardError):
    """A unique attribute is already taken."""

    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class InternalError(BoardError):
    """Unexpected failure, reported to clients without details."""

    kind = ErrorKind.INTERNAL


class TokenInvalidError(Exception):
    """Raised by the token issuer when a token cannot be verified."""
