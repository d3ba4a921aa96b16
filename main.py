"""
QuestionBot - Main Entry Point
==============================

Starts one bot process per machine.

Usage:
    python main.py

The bot reads its settings from the environment (and a .env file next to
the working directory). DISCORD_TOKEN is required.
"""

import asyncio
import fcntl
import os
import signal
import sys
import tempfile
from pathlib import Path
from typing import Optional

# config.py reads the environment at import time
from dotenv import load_dotenv
load_dotenv()

from questionbot.core.logger import logger
from questionbot.core.config import ConfigValidationError, load_token, validate_and_log_config
from questionbot.bot import QuestionBot


LOCK_FILE_PATH = Path(tempfile.gettempdir()) / "questionbot.lock"
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


# =============================================================================
# Single Instance Lock
# =============================================================================

class AlreadyRunningError(RuntimeError):
    """Another process holds the instance lock."""

    def __init__(self, pid: Optional[str]) -> None:
        super().__init__(f"QuestionBot is already running (PID {pid or 'unknown'})")
        self.pid = pid


class InstanceLock:
    """
    Exclusive flock on a PID file, held for the life of the ``with`` block.

    The OS drops the lock when the process dies, so a crash never leaves a
    stale lock behind.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or LOCK_FILE_PATH
        self._fd: Optional[int] = None

    def __enter__(self) -> "InstanceLock":
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            holder = os.read(fd, 32).decode(errors="replace").strip() or None
            os.close(fd)
            raise AlreadyRunningError(holder)

        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        return self

    def __exit__(self, *exc_info) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None


# =============================================================================
# Run
# =============================================================================

async def run_bot(bot: QuestionBot, token: str) -> None:
    """Run until the bot closes; SIGTERM/SIGHUP trigger a graceful close."""
    loop = asyncio.get_running_loop()

    def request_close(sig: signal.Signals) -> None:
        logger.info("Signal Received", [
            ("Signal", sig.name),
            ("Action", "Closing bot"),
        ])
        loop.create_task(bot.close())

    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, request_close, sig)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning("Signal Handler Not Installed", [
                ("Signal", sig.name),
                ("Error", str(e)),
            ])

    async with bot:
        await bot.start(token)


def main() -> int:
    """Validate config, take the instance lock and run the bot. Returns the exit code."""
    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Configuration Invalid", [
            ("Error", str(e)),
            ("Action", "Check your .env file"),
        ])
        return 1

    try:
        with InstanceLock():
            logger.tree("Starting QuestionBot", [
                ("PID", os.getpid()),
                ("Lock File", LOCK_FILE_PATH),
            ], emoji="❓")
            asyncio.run(run_bot(QuestionBot(), load_token()))
    except AlreadyRunningError as e:
        logger.error("Another Instance Already Running", [
            ("PID", e.pid or "Unknown"),
        ])
        return 1
    except KeyboardInterrupt:
        logger.info("Shutdown Requested", [
            ("By", "Ctrl+C"),
        ])
    except Exception as e:
        logger.error_tree("Fatal Error", e)
        logger.exception("Traceback")
        return 1

    logger.info("Bot Shutdown Complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
