"""Signed bearer token creation and verification."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import structlog
from pydantic import ValidationError

from board_backend.errors import TokenInvalidError
from board_backend.models.auth import TokenPayload

logger = structlog.get_logger(__name__)

DEFAULT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and the expiry embedded in its ``exp`` claim."""

    token: str
    expires_at: datetime


class TokenIssuer:
    """Issues and verifies HMAC-signed JWTs for a single secret.

    The issuer does not know about token classes; callers choose the
    lifetime per token.
    """

    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm

    def issue(self, payload: TokenPayload, ttl: timedelta) -> IssuedToken:
        """Sign ``payload`` with an expiry of now + ``ttl``.

        ``iat`` is truncated to whole seconds so that ``expires_at`` is exactly
        the value encoded in the ``exp`` claim. A random ``jti`` keeps tokens
        issued within the same second distinct.

        Args:
            payload: Identity claims
            ttl: Token lifetime

        Returns:
            IssuedToken with the encoded string and its expiry
        """
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + ttl
        claims = {
            "id": payload.id,
            "email": payload.email,
            "role": payload.role.value,
            "iat": issued_at,
            "exp": expires_at,
            "jti": uuid4().hex,
        }
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        logger.debug(
            "token_issued",
            user_id=payload.id,
            ttl_seconds=int(ttl.total_seconds()),
        )
        return IssuedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> TokenPayload:
        """Check signature and expiry and return the identity claims.

        Args:
            token: Encoded JWT string

        Returns:
            TokenPayload decoded from the token

        Raises:
            TokenInvalidError: If the token is malformed, tampered with,
                expired, or lacks identity claims
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenInvalidError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        try:
            return TokenPayload(
                id=claims["id"],
                email=claims["email"],
                role=claims.get("role", "user"),
            )
        except (KeyError, ValidationError):
            raise TokenInvalidError("Token payload is missing identity claims")
