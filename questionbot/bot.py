"""
QuestionBot - Main Bot Class
============================

Core Discord client that asks a channel one question a day.

ARCHITECTURE OVERVIEW:
======================

┌─────────────────────────────────────────────────────────────────┐
│                        BOT LAYER (bot.py)                        │
│  - Discord client setup and event routing                       │
│  - Service lifecycle management                                 │
└─────────────────────────────────────────────────────────────────┘
                              │
        ┌─────────────────────┼─────────────────────┐
        ▼                     ▼                     ▼
┌───────────────┐    ┌───────────────┐    ┌───────────────┐
│   HANDLERS    │    │   SERVICES    │    │    POSTING    │
│ - ready.py    │    │ - database/   │    │ - daily_      │
│ - messages.py │    │ - schedulers/ │    │   question.py │
│ - reactions.py│    └───────────────┘    └───────────────┘
│ - shutdown.py │
└───────────────┘

Features:
- Questions are submitted by DM as "quoted" text and queued per channel
- One question per day, plus a new one whenever enough people downvote
- A separate shallow question pool per channel, reset by scripts/upgrade_channels.py
- Release notes from README.md announced once per version
- Health check HTTP endpoint
"""

from pathlib import Path
from typing import Optional, Union

import discord
from discord.ext import commands

from questionbot.core.config import DATABASE_PATH
from questionbot.core.health import HealthCheckServer
from questionbot.core.logger import logger
from questionbot.handlers import (
    on_message_handler,
    on_reaction_add_handler,
    on_reaction_remove_handler,
    on_ready_handler,
    shutdown_handler,
)
from questionbot.services.database import QuestionStore, open_store
from questionbot.services.schedulers.daily import DailyQuestionScheduler


# =============================================================================
# QuestionBot Class
# =============================================================================

class QuestionBot(commands.Bot):
    """
    Main Discord bot class.

    INTENTS REQUIRED:
    - guilds: Channel lookups
    - messages / dm_messages: Introductions and DM question submissions
    - reactions: Vote tallying on the question of the day
    - message_content: Read the quoted questions
    """

    def __init__(
        self,
        store: Optional[QuestionStore] = None,
        database_path: Union[str, Path] = DATABASE_PATH,
    ) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.dm_messages = True
        intents.reactions = True
        intents.message_content = True

        super().__init__(
            command_prefix="!",  # Not used - the bot has no commands
            intents=intents,
            help_command=None,
        )

        self.store: QuestionStore = store if store is not None else open_store(database_path)

        # Started in on_ready
        self.daily_scheduler: Optional[DailyQuestionScheduler] = None
        self.health_server: Optional[HealthCheckServer] = None

        # Discord can fire on_ready multiple times (reconnects, resume)
        self._ready_initialized: bool = False
        self._shutdown_started: bool = False

    # =========================================================================
    # Event Handlers
    # =========================================================================

    async def on_ready(self) -> None:
        if self._ready_initialized:
            logger.info("🔄 Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True
        await on_ready_handler(self)

    async def on_message(self, message: discord.Message) -> None:
        await on_message_handler(self, message)

    async def on_reaction_add(self, reaction: discord.Reaction, user: discord.User) -> None:
        await on_reaction_add_handler(self, reaction, user)

    async def on_reaction_remove(self, reaction: discord.Reaction, user: discord.User) -> None:
        await on_reaction_remove_handler(self, reaction, user)

    async def on_resumed(self) -> None:
        logger.info("Bot Connection Resumed")

    async def close(self) -> None:
        """Cleanup when bot is shutting down."""
        if self._shutdown_started:
            return
        self._shutdown_started = True
        await shutdown_handler(self)
        await super().close()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["QuestionBot"]
