"""Visitor counter for login and refresh events."""

import asyncio
from datetime import datetime, timezone

import structlog

from board_backend.database import get_pool
from board_backend.models.visitor import VisitorSummary

logger = structlog.get_logger(__name__)

# Module-level background task tracking
_pending_visits: set[asyncio.Task] = set()


class VisitorService:
    """Per-identifier visit counts in the ``visitor_count`` table."""

    async def upsert_visitor_count(self, identifier: str) -> None:
        """Increment the visit counter for ``identifier``, creating it if absent.

        A single INSERT ... ON CONFLICT statement, so concurrent increments for
        the same identifier do not lose updates.

        Args:
            identifier: Visitor key (the user's email for authenticated visits)
        """
        now = datetime.now(timezone.utc)
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO visitor_count (identifier, count, first_visited_at, last_visited_at)
                VALUES ($1, 1, $2, $2)
                ON CONFLICT (identifier) DO UPDATE SET
                    count = visitor_count.count + 1,
                    last_visited_at = EXCLUDED.last_visited_at
                """,
                identifier,
                now,
            )

        logger.debug("visitor_count_incremented", identifier=identifier)

    async def get_visitor_count(self, identifier: str) -> int:
        """Return the visit count for ``identifier`` (0 if never seen)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT count FROM visitor_count WHERE identifier = $1",
                identifier,
            )

        return count or 0

    async def get_summary(self) -> VisitorSummary:
        """Aggregate totals across all identifiers."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT COUNT(*) AS total_visitors, COALESCE(SUM(count), 0) AS total_visits
                FROM visitor_count
                """
            )

        return VisitorSummary(
            total_visitors=row["total_visitors"],
            total_visits=row["total_visits"],
        )


async def _record_visit(service: VisitorService, identifier: str) -> None:
    try:
        await service.upsert_visitor_count(identifier)
    except Exception as e:
        logger.warning("visitor_count_failed", identifier=identifier, error=str(e))


def schedule_visit(service: VisitorService, identifier: str) -> asyncio.Task:
    """Record a visit in the background without blocking the caller.

    Failures are logged and never propagate to the caller.

    Args:
        service: Visitor service to write through
        identifier: Visitor key

    Returns:
        The created asyncio Task
    """
    task = asyncio.create_task(_record_visit(service, identifier))
    _pending_visits.add(task)
    task.add_done_callback(_pending_visits.discard)
    return task


async def await_pending_visits(timeout: float = 5.0) -> None:
    """Wait for outstanding visit writes on the running loop, used at shutdown.

    Args:
        timeout: Maximum seconds to wait for pending tasks
    """
    loop = asyncio.get_running_loop()
    pending = [t for t in _pending_visits if t.get_loop() is loop]
    if not pending:
        return

    logger.info("draining_pending_visits", count=len(pending))
    try:
        await asyncio.wait_for(
            asyncio.gather(*pending, return_exceptions=True),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "pending_visits_timeout",
            remaining=len(_pending_visits),
            timeout=timeout,
        )
