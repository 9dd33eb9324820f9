"""bcrypt password hashing.

bcrypt is CPU-bound, so both operations run in the default executor to keep
the event loop responsive for other requests.
"""

import asyncio

import bcrypt
import structlog

from board_backend.config import get_settings
from board_backend.errors import BadRequestError

logger = structlog.get_logger(__name__)

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def _hash(password: str, rounds: int) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _check(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


async def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain-text password to hash

    Returns:
        Bcrypt hash string

    Raises:
        BadRequestError: If bcrypt rejects the password (over 72 bytes)
    """
    rounds = get_settings().bcrypt_rounds
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, _hash, password, rounds)
    except ValueError as e:
        logger.warning("password_hash_rejected", error=str(e))
        raise BadRequestError(
            f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes"
        ) from e


async def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash.

    A malformed stored hash counts as a mismatch.

    Args:
        password: Plain-text password to check
        password_hash: Bcrypt hash to verify against

    Returns:
        True if the password matches, False otherwise
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, _check, password, password_hash)
    except ValueError as e:
        logger.warning("password_hash_malformed", error=str(e))
        return False
