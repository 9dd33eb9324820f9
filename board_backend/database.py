"""asyncpg pool and schema management for the board tables."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from board_backend.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

# Tables the auth and dashboard endpoints read and write
REQUIRED_TABLES = ("users", "refresh_token", "visitor_count")

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the shared connection pool.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Create the shared pool from settings. Calling it again is a no-op."""
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
    except Exception as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply pending SQL migrations in filename order.

    Applied filenames are recorded in ``schema_migrations`` after the file
    succeeds. Files are written with IF NOT EXISTS, so a file that failed
    part way is simply re-run on the next start.

    Args:
        migrations_dir: Directory holding ``NNN_name.sql`` files

    Returns:
        Filenames applied by this call
    """
    migration_files = sorted(migrations_dir.glob("*.sql"))
    if not migration_files:
        logger.warning("no_migrations_found", path=str(migrations_dir))
        return []

    pool = await get_pool()
    applied: list[str] = []

    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
        done = {r["filename"] for r in await conn.fetch("SELECT filename FROM schema_migrations")}

        for migration_file in migration_files:
            if migration_file.name in done:
                continue
            try:
                await conn.execute(migration_file.read_text())
                await conn.execute(
                    "INSERT INTO schema_migrations (filename) VALUES ($1)",
                    migration_file.name,
                )
            except Exception as e:
                logger.error("migration_failed", file=migration_file.name, error=str(e))
                raise
            applied.append(migration_file.name)
            logger.info("migration_applied", file=migration_file.name)

    return applied


async def missing_tables() -> list[str]:
    """Return the required board tables that do not exist yet."""
    pool = await get_pool()

    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT t FROM unnest($1::text[]) AS t WHERE to_regclass(t) IS NULL",
            list(REQUIRED_TABLES),
        )

    return [r["t"] for r in rows]


async def health_check() -> bool:
    """Check that the pool answers and the board schema is in place.

    Returns:
        True if every required table exists, False on any failure
    """
    try:
        missing = await missing_tables()
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False

    if missing:
        logger.warning("database_schema_incomplete", missing_tables=missing)
        return False
    return True
