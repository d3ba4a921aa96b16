"""
QuestionBot - Shutdown Handler
==============================

Graceful shutdown and cleanup logic.
"""

import asyncio
from typing import TYPE_CHECKING, Any, List, Tuple

from questionbot.core.logger import logger

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


# =============================================================================
# Constants
# =============================================================================

SHUTDOWN_TIMEOUT = 10.0  # Maximum seconds to wait for cleanup tasks


# =============================================================================
# Shutdown Handler
# =============================================================================

async def _safe_cleanup(name: str, cleanup_coro: Any) -> bool:
    """
    Execute a cleanup coroutine with error handling.

    Returns:
        True if cleanup succeeded, False otherwise
    """
    try:
        await cleanup_coro
        logger.debug("Cleanup Complete", [
            ("Task", name),
        ])
        return True
    except asyncio.CancelledError:
        return True
    except Exception as e:
        logger.warning("Cleanup Failed", [
            ("Task", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
        ])
        return False


async def _close_store(bot: "QuestionBot") -> None:
    bot.store.db.close()


async def shutdown_handler(bot: "QuestionBot") -> None:
    """
    Stop the scheduler and health server, then close the database.

    Args:
        bot: The QuestionBot instance

    The database is closed last so an in-flight post can still write.
    """
    logger.info("Shutting Down QuestionBot", [
        ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
    ])

    cleanup_tasks: List[Tuple[str, Any]] = []

    if bot.daily_scheduler and bot.daily_scheduler.is_running:
        cleanup_tasks.append(("Daily Scheduler", bot.daily_scheduler.stop()))

    if bot.health_server:
        cleanup_tasks.append(("Health Check Server", bot.health_server.stop()))

    successful = 0
    failed = 0
    if cleanup_tasks:
        try:
            async with asyncio.timeout(SHUTDOWN_TIMEOUT):
                results = await asyncio.gather(
                    *[_safe_cleanup(name, coro) for name, coro in cleanup_tasks],
                    return_exceptions=True,
                )
            successful = sum(1 for r in results if r is True)
            failed = len(results) - successful
        except asyncio.TimeoutError:
            logger.warning("Shutdown Cleanup Timed Out", [
                ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
                ("Note", "Some tasks may not have completed"),
            ])

    if await _safe_cleanup("Database", _close_store(bot)):
        successful += 1
    else:
        failed += 1

    logger.info("Shutdown Cleanup Complete", [
        ("Successful", str(successful)),
        ("Failed", str(failed)),
    ])
    logger.tree("Bot Shutdown Complete", [
        ("Status", "All services stopped"),
    ], emoji="👋")


__all__ = ["shutdown_handler"]
