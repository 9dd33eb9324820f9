"""Auth request and response models with validation."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from board_backend.models.user import Role
from board_backend.services.password_hasher import MAX_PASSWORD_BYTES

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_new_password(v: str) -> str:
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return v


class TokenPayload(BaseModel):
    """Identity claims carried by access and refresh tokens."""

    id: int
    email: str
    role: Role = Role.USER


class LoginRequest(BaseModel):
    """Login credentials for authentication.

    Attributes:
        email: Registered email address
        password: Plain-text password
    """

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Successful login response with token pair and profile basics."""

    access_token: str
    refresh_token: str
    name: str
    nickname: Optional[str] = None
    email: str


class RefreshRequest(BaseModel):
    """Request to exchange a refresh token for a new token pair.

    The token is optional at the schema level so that a missing token is
    reported as an authentication failure rather than a validation error.
    """

    refresh_token: Optional[str] = None


class TokenPairResponse(BaseModel):
    """Rotated token pair returned by /auth/refresh."""

    access_token: str
    refresh_token: str


class ValidateTokenResponse(BaseModel):
    """Result of checking an access token's signature and expiry."""

    valid: bool


class SignUpRequest(BaseModel):
    """New account registration.

    Attributes:
        email: Unique email address
        password: Plain-text password (8 chars to 72 bytes)
        name: Display name
        nickname: Optional unique nickname
    """

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)
    nickname: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        """Ensure email looks like local@domain.tld."""
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Email must be a valid address")
        return v

    @field_validator("password")
    @classmethod
    def password_usable(cls, v: str) -> str:
        """Reject blank passwords and ones bcrypt cannot hash."""
        return _check_new_password(v)


class UpdatePasswordRequest(BaseModel):
    """Request to change the current user's password."""

    password: str = Field(..., min_length=8)

    @field_validator("password")
    @classmethod
    def password_usable(cls, v: str) -> str:
        """Reject blank passwords and ones bcrypt cannot hash."""
        return _check_new_password(v)


class UserSummary(BaseModel):
    """Compact user representation for API responses."""

    id: int
    email: str
    name: str
    nickname: Optional[str] = None
    role: Role
    created_at: datetime
