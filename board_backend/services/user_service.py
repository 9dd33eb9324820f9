"""User management service (credential store)."""

from datetime import datetime, timezone
from typing import Optional

import asyncpg
import structlog

from board_backend.database import get_pool
from board_backend.errors import ConflictError, NotFoundError
from board_backend.models.user import Role, User
from board_backend.services.password_hasher import hash_password
from board_backend.services.refresh_token_store import RefreshTokenStore

logger = structlog.get_logger(__name__)

USER_COLUMNS = "id, email, name, nickname, password_hash, role, created_at, updated_at"


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        nickname=row["nickname"],
        password_hash=row["password_hash"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user CRUD operations.

    Refresh tokens are keyed by email, so every credential change and
    account removal revokes the owner's outstanding refresh tokens.
    """

    def __init__(self, refresh_tokens: Optional[RefreshTokenStore] = None):
        self.refresh_tokens = refresh_tokens or RefreshTokenStore()

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        nickname: Optional[str] = None,
        role: Role = Role.USER,
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            email: Unique email address
            password: Plain-text password (will be hashed)
            name: Display name
            nickname: Optional unique nickname
            role: Member role

        Returns:
            Created User model

        Raises:
            ConflictError: If the email or nickname is already taken
        """
        if await self.find_exist_user(email):
            raise ConflictError(f"Email {email} is already registered")

        if nickname is not None and await self.is_nickname_taken(nickname):
            raise ConflictError(f"Nickname {nickname} is already taken")

        password_hash = await hash_password(password)
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (email, name, nickname, password_hash, role, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7)
                    RETURNING {USER_COLUMNS}
                    """,
                    email,
                    name,
                    nickname,
                    password_hash,
                    role.value,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            # Lost a race against a concurrent sign-up
            raise ConflictError("Email or nickname is already taken")

        user = _row_to_user(row)
        logger.info("user_created", user_id=user.id, role=user.role.value)
        return user

    async def get_by_email(self, email: str) -> User:
        """Get a user by email (exact match).

        Args:
            email: Email to look up

        Returns:
            User model

        Raises:
            NotFoundError: If no user has this email
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE email = $1",
                email,
            )

        if row is None:
            raise NotFoundError(f"User with email {email} could not be found")

        return _row_to_user(row)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by id.

        Args:
            user_id: User primary key

        Returns:
            User model or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            return None

        return _row_to_user(row)

    async def find_exist_user(self, email: str) -> bool:
        """Return whether a user with this email exists.

        Only a not-found result maps to False; other failures propagate.
        """
        try:
            await self.get_by_email(email)
        except NotFoundError:
            return False
        return True

    async def is_nickname_taken(self, nickname: str) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE nickname = $1",
                nickname,
            )

        return count > 0

    async def update_password(self, email: str, password: str) -> User:
        """Replace a user's password hash.

        Args:
            email: Email of the user to update
            password: New plain-text password (will be hashed)

        Returns:
            Updated User model

        Raises:
            NotFoundError: If no user has this email
            BadRequestError: If bcrypt rejects the new password
        """
        user = await self.get_by_email(email)
        password_hash = await hash_password(password)
        await self.refresh_tokens.revoke_all_for(email)
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET password_hash = $1, updated_at = $2
                WHERE id = $3
                RETURNING {USER_COLUMNS}
                """,
                password_hash,
                now,
                user.id,
            )

        if row is None:
            raise NotFoundError(f"User with email {email} could not be found")

        logger.info("user_password_updated", user_id=user.id)
        return _row_to_user(row)

    async def remove_account(self, email: str) -> User:
        """Hard-delete a user and revoke their refresh tokens.

        Args:
            email: Email of the user to delete

        Returns:
            The deleted User model

        Raises:
            NotFoundError: If no user has this email
        """
        user = await self.get_by_email(email)
        await self.refresh_tokens.revoke_all_for(email)

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute("DELETE FROM users WHERE id = $1", user.id)

        logger.info("user_deleted", user_id=user.id)
        return user
