"""
QuestionBot - Daily Question Scheduler
======================================

Posts a new question to every registered channel once a day.

Features:
- Daily scheduling at a configurable hour and minute
- Timezone-aware (TIMEZONE, default America/New_York)
- Background async task with start/stop controls
- Errors are logged and retried without stopping the loop
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from questionbot.core.config import (
    DAILY_POST_HOUR,
    DAILY_POST_MINUTE,
    SCHEDULE_TZ,
    SCHEDULER_ERROR_RETRY,
)
from questionbot.core.logger import logger


# =============================================================================
# Daily Question Scheduler
# =============================================================================

class DailyQuestionScheduler:
    """Runs ``post_callback`` every day at ``post_hour:post_minute``."""

    def __init__(
        self,
        post_callback: Callable[[], Any],
        post_hour: int = DAILY_POST_HOUR,
        post_minute: int = DAILY_POST_MINUTE,
        tz: ZoneInfo = SCHEDULE_TZ,
        error_retry_seconds: int = SCHEDULER_ERROR_RETRY,
    ) -> None:
        """
        Initialize the daily scheduler.

        Args:
            post_callback: Async function to call when posting
            post_hour: Hour of the day to post (0-23)
            post_minute: Minute of the hour to post (0-59)
            tz: Timezone the post time is expressed in
            error_retry_seconds: Seconds to wait before retry on error
        """
        self.post_callback: Callable[[], Any] = post_callback
        self.post_hour: int = post_hour
        self.post_minute: int = post_minute
        self.tz: ZoneInfo = tz
        self.error_retry_seconds: int = error_retry_seconds

        self.is_running: bool = False
        self.task: Optional[asyncio.Task] = None

    # -------------------------------------------------------------------------
    # Start/Stop Controls
    # -------------------------------------------------------------------------

    def _handle_task_exception(self, task: asyncio.Task) -> None:
        """Handle exceptions from the scheduler task."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.tree("Daily Scheduler Task Exception", [
                ("Error Type", type(exc).__name__),
                ("Error", str(exc)[:100]),
            ], emoji="❌")

    async def start(self) -> bool:
        """
        Start the daily posting schedule.

        Returns:
            True if started successfully, False if already running
        """
        if self.task and not self.task.done():
            logger.tree("Daily Scheduler Already Running", [
                ("Status", "Skipped"),
            ], emoji="⚠️")
            return False

        self.is_running = True
        self.task = asyncio.create_task(self._schedule_loop())
        self.task.add_done_callback(self._handle_task_exception)

        next_post = self._calculate_next_post_time()
        logger.tree("Daily Scheduler Started", [
            ("Post Time", f"{self.post_hour:02d}:{self.post_minute:02d}"),
            ("Timezone", str(self.tz)),
            ("Next Post", next_post.strftime("%Y-%m-%d %I:%M %p")),
        ], emoji="⏰")
        return True

    async def stop(self) -> bool:
        """
        Stop the daily posting schedule.

        Returns:
            True if stopped successfully, False if not running
        """
        if not self.is_running:
            return False

        self.is_running = False
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None

        logger.tree("Daily Scheduler Stopped", [
            ("Status", "Stopped"),
        ], emoji="🛑")
        return True

    # -------------------------------------------------------------------------
    # Scheduling Loop
    # -------------------------------------------------------------------------

    async def _schedule_loop(self) -> None:
        """Sleep until the next post time, post, repeat."""
        while self.is_running:
            try:
                next_post_time = self._calculate_next_post_time()
                wait_seconds = (next_post_time - datetime.now(self.tz)).total_seconds()

                if wait_seconds > 0:
                    logger.tree("Next Daily Post Scheduled", [
                        ("Time", next_post_time.strftime("%Y-%m-%d %I:%M %p")),
                        ("In", f"{wait_seconds / 3600:.1f} hours"),
                    ], emoji="⏰")
                    await asyncio.sleep(wait_seconds)

                if self.is_running:
                    logger.tree("Daily Post Triggered", [
                        ("Time", datetime.now(self.tz).strftime("%I:%M %p")),
                    ], emoji="📅")
                    try:
                        await self.post_callback()
                    except Exception as e:
                        logger.tree("Failed To Post Daily Questions", [
                            ("Error Type", type(e).__name__),
                            ("Error", str(e)[:100]),
                        ], emoji="❌")

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.tree("Daily Scheduler Loop Error", [
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:80]),
                ], emoji="❌")
                await asyncio.sleep(self.error_retry_seconds)

    def _calculate_next_post_time(self, now: Optional[datetime] = None) -> datetime:
        """
        Calculate the next daily post time strictly after ``now``.

        Args:
            now: Reference time (defaults to the current time in ``tz``)

        Returns:
            Timezone-aware datetime of the next post
        """
        if now is None:
            now = datetime.now(self.tz)
        else:
            now = now.astimezone(self.tz)

        next_post = now.replace(
            hour=self.post_hour, minute=self.post_minute, second=0, microsecond=0
        )
        if next_post <= now:
            next_post = next_post + timedelta(days=1)
        return next_post

    # -------------------------------------------------------------------------
    # Status Methods
    # -------------------------------------------------------------------------

    def get_next_post_time(self) -> Optional[datetime]:
        """Next scheduled post time, or None if the scheduler is not running."""
        if not self.is_running:
            return None
        return self._calculate_next_post_time()

    def get_status(self) -> dict[str, Any]:
        """Current scheduler status for logs and the health endpoint."""
        next_post = self.get_next_post_time()
        return {
            "is_running": self.is_running,
            "next_post_time": next_post.isoformat() if next_post else None,
            "next_post_in_minutes": (
                int((next_post - datetime.now(self.tz)).total_seconds() / 60)
                if next_post
                else None
            ),
        }


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["DailyQuestionScheduler"]
