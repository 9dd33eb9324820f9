"""User and refresh token records."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    """Board member role."""

    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """A registered board member.

    ``password_hash`` is the bcrypt hash; the plaintext is never stored.
    """

    id: int
    email: str
    name: str
    nickname: Optional[str] = None
    password_hash: str
    role: Role = Role.USER
    created_at: datetime
    updated_at: datetime


class RefreshToken(BaseModel):
    """A persisted refresh token issuance."""

    id: int
    token: str
    user_email: str
    expires_at: datetime
    revoked: bool = False
    created_at: datetime
