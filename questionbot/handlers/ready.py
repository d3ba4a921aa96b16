"""
QuestionBot - Ready Handler
===========================

Service initialization, startup logic and release-note announcements.
"""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Union

import discord

from questionbot.core import messages
from questionbot.core.config import DISCORD_MESSAGE_LIMIT, README_PATH, SERVICE_INIT_TIMEOUT
from questionbot.core.health import HealthCheckServer
from questionbot.core.logger import logger
from questionbot.posting.daily_question import post_to_all_channels
from questionbot.services.schedulers.daily import DailyQuestionScheduler
from questionbot.utils.discord_rate_limit import log_http_error
from questionbot.utils.helpers import truncate
from questionbot.utils.release_notes import read_release_notes

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


# =============================================================================
# Ready Handler
# =============================================================================

async def _safe_init(
    name: str,
    init_func: Callable[["QuestionBot"], Awaitable[None]],
    bot: "QuestionBot",
    timeout: float = SERVICE_INIT_TIMEOUT,
) -> bool:
    """
    Initialize a service with a timeout, logging instead of raising.

    Returns:
        True if initialization succeeded, False otherwise
    """
    try:
        async with asyncio.timeout(timeout):
            await init_func(bot)
        return True
    except asyncio.TimeoutError:
        logger.error("Timeout Initializing Service", [
            ("Service", name),
            ("Timeout", f"{timeout}s"),
            ("Status", "Skipped - continuing startup"),
        ])
        return False
    except Exception as e:
        logger.error("Failed To Initialize Service", [
            ("Service", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
            ("Status", "Skipped - continuing startup"),
        ])
        return False


async def on_ready_handler(bot: "QuestionBot") -> None:
    """
    Start the scheduler and health server, then announce release notes.

    Args:
        bot: The QuestionBot instance
    """
    logger.tree(
        f"Bot Ready: {bot.user.name}",
        [
            ("Bot ID", str(bot.user.id)),
            ("Guilds", str(len(bot.guilds))),
            ("Channels", str(len(bot.store.get_all_channels()))),
        ],
        emoji="✅",
    )

    init_results: List[tuple[str, bool]] = [
        ("Daily Scheduler", await _safe_init("Daily Scheduler", _init_daily_scheduler, bot)),
        ("Health Server", await _safe_init("Health Server", _init_health_server, bot)),
        ("Release Notes", await _safe_init("Release Notes", _init_release_notes, bot)),
    ]

    succeeded = sum(1 for _, ok in init_results if ok)
    failed = [name for name, ok in init_results if not ok]

    if failed:
        logger.warning("Startup Completed With Errors", [
            ("Services OK", str(succeeded)),
            ("Services Failed", str(len(failed))),
            ("Failed", ", ".join(failed)),
        ])
    else:
        logger.tree("All Services Initialized", [
            ("Services", str(succeeded)),
            ("Status", "All OK"),
        ], emoji="✅")


# =============================================================================
# Service Initialization
# =============================================================================

async def _init_daily_scheduler(bot: "QuestionBot") -> None:
    bot.daily_scheduler = DailyQuestionScheduler(lambda: post_to_all_channels(bot))
    await bot.daily_scheduler.start()


async def _init_health_server(bot: "QuestionBot") -> None:
    bot.health_server = HealthCheckServer(bot)
    await bot.health_server.start()


async def _init_release_notes(bot: "QuestionBot") -> None:
    await announce_release_notes(bot)


# =============================================================================
# Release Notes
# =============================================================================

async def announce_release_notes(
    bot: "QuestionBot",
    readme_path: Optional[Union[str, Path]] = None,
) -> int:
    """
    Post the newest README release section to every channel that has not seen it.

    A channel's ``version_text`` is only updated after the post succeeds, so a
    failed send is retried on the next start.

    Returns:
        Number of channels the notes were posted to
    """
    notes = read_release_notes(readme_path or README_PATH)
    if not notes:
        logger.debug("No Release Notes Found")
        return 0

    store = bot.store
    announced = 0

    for channel_id in store.get_all_channels():
        if store.get_version_text(channel_id) == notes:
            continue

        channel = bot.get_channel(channel_id)
        if channel is None:
            continue

        try:
            await channel.send(truncate(messages.WHAT_HAPPENED + notes, DISCORD_MESSAGE_LIMIT))
        except discord.HTTPException as e:
            log_http_error(e, "Announce Release Notes", [("Channel", str(channel_id))])
            continue

        store.set_version_text(channel_id, notes)
        announced += 1

    if announced:
        logger.tree("Release Notes Announced", [
            ("Channels", announced),
            ("Notes", truncate(notes.splitlines()[0], 50)),
        ], emoji="📝")
    return announced


__all__ = ["on_ready_handler", "announce_release_notes"]
