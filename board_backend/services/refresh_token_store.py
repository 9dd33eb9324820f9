"""Persistence for issued refresh tokens."""

from datetime import datetime, timezone
from typing import Optional

import structlog

from board_backend.database import get_pool
from board_backend.models.user import RefreshToken

logger = structlog.get_logger(__name__)


def _row_to_token(row) -> RefreshToken:
    return RefreshToken(
        id=row["id"],
        token=row["token"],
        user_email=row["user_email"],
        expires_at=row["expires_at"],
        revoked=row["revoked"],
        created_at=row["created_at"],
    )


class RefreshTokenStore:
    """Refresh token rows in the ``refresh_token`` table.

    Rows are only ever inserted or flagged revoked; the service never
    deletes history.
    """

    async def save(self, owner_email: str, token: str, expires_at: datetime) -> None:
        """Insert a new, non-revoked refresh token.

        Args:
            owner_email: Email of the user the token was issued to
            token: Signed refresh token string
            expires_at: Absolute expiry, taken from the token's exp claim
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO refresh_token (token, user_email, expires_at, revoked, created_at)
                VALUES ($1, $2, $3, FALSE, $4)
                """,
                token,
                owner_email,
                expires_at,
                datetime.now(timezone.utc),
            )

        logger.info(
            "refresh_token_saved",
            user_email=owner_email,
            expires_at=expires_at.isoformat(),
        )

    async def find_valid(self, token: str) -> Optional[RefreshToken]:
        """Look up a refresh token by exact string match.

        Expiry and the revoked flag are NOT filtered here; callers must check
        both on the returned record.

        Args:
            token: Refresh token string presented by the client

        Returns:
            RefreshToken record or None if it was never issued
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, token, user_email, expires_at, revoked, created_at
                FROM refresh_token
                WHERE token = $1
                """,
                token,
            )

        if row is None:
            return None

        return _row_to_token(row)

    async def revoke(self, record_id: int) -> None:
        """Flag a refresh token as revoked.

        Idempotent: revoking an already revoked token is a no-op.

        Args:
            record_id: Primary key of the refresh token row
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE refresh_token
                SET revoked = TRUE
                WHERE id = $1
                """,
                record_id,
            )

        logger.info("refresh_token_revoked", token_id=record_id)

    async def consume(self, record_id: int) -> bool:
        """Atomically revoke a refresh token if it is still valid.

        The check and the revocation are a single conditional UPDATE, so of
        several concurrent callers presenting the same token at most one
        sees an affected row.

        Args:
            record_id: Primary key of the refresh token row

        Returns:
            True if this call performed the revocation, False if the token
            was already revoked or has expired
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE refresh_token
                SET revoked = TRUE
                WHERE id = $1 AND revoked = FALSE AND expires_at >= $2
                """,
                record_id,
                datetime.now(timezone.utc),
            )

        consumed = result == "UPDATE 1"

        if consumed:
            logger.info("refresh_token_consumed", token_id=record_id)
        else:
            logger.warning("refresh_token_consume_rejected", token_id=record_id)

        return consumed

    async def revoke_all_for(self, owner_email: str) -> None:
        """Revoke every live refresh token issued to ``owner_email``.

        Used when the owner's credentials change or the account goes away,
        so no earlier token can be rotated into a new pair.

        Args:
            owner_email: Email the tokens were issued to
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE refresh_token
                SET revoked = TRUE
                WHERE user_email = $1 AND revoked = FALSE
                """,
                owner_email,
            )

        logger.info("all_refresh_tokens_revoked", user_email=owner_email, result=result)
