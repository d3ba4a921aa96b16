"""
Shared fixtures for the test suite.
"""

import os
import tempfile
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set env vars before any application modules are imported
os.environ.setdefault("DISCORD_TOKEN", "test_token")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="questionbot-logs-"))
os.environ.setdefault("TIMEZONE", "UTC")

from questionbot.services.database import QuestionStore, SqliteDatabase  # noqa: E402


BOT_USER_ID = 999


@pytest.fixture
def db(tmp_path):
    """A fresh database file per test."""
    database = SqliteDatabase(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def memory_db():
    database = SqliteDatabase(":memory:")
    yield database
    database.close()


@pytest.fixture
def store(db):
    question_store = QuestionStore(db)
    question_store.init()
    return question_store


def _make_message(message_id=1000, channel=None, author_id=BOT_USER_ID, content="", reactions=None):
    """A discord.Message stand-in with awaitable actions."""
    message = MagicMock()
    message.id = message_id
    message.channel = channel
    message.content = content
    message.author = SimpleNamespace(id=author_id, name=f"user{author_id}", bot=author_id == BOT_USER_ID)
    message.reactions = reactions or []
    message.pinned = False
    message.add_reaction = AsyncMock()
    message.pin = AsyncMock()
    message.unpin = AsyncMock()
    return message


def _make_channel(channel_id=111, sent_ids=None):
    """A text channel stand-in whose send() returns messages with increasing ids."""
    channel = MagicMock()
    channel.id = channel_id
    channel.sent = []
    ids = iter(sent_ids or range(5000, 6000))

    async def send(content=None, **kwargs):
        message = _make_message(message_id=next(ids), channel=channel, content=content)
        channel.sent.append(message)
        return message

    channel.send = AsyncMock(side_effect=send)
    channel.fetch_message = AsyncMock(return_value=None)
    return channel


@pytest.fixture
def make_message():
    return _make_message


@pytest.fixture
def make_channel():
    return _make_channel


@pytest.fixture
def mock_bot(store):
    """A QuestionBot stand-in carrying a real store."""
    bot = MagicMock()
    bot.store = store
    bot.user = SimpleNamespace(id=BOT_USER_ID, name="QuestionBot")
    bot.guilds = []
    bot.channels = {}
    bot.get_channel = MagicMock(side_effect=lambda channel_id: bot.channels.get(channel_id))
    bot.daily_scheduler = None
    bot.health_server = None
    return bot


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip the typing and rate-limit pauses."""
    sleep = AsyncMock()
    monkeypatch.setattr("asyncio.sleep", sleep)
    return sleep


def http_error(status=403, cls=None, text="Missing Access"):
    """Build a discord HTTPException (Forbidden by default)."""
    import discord

    response = MagicMock(status=status, reason="Error")
    cls = cls or {403: discord.Forbidden, 404: discord.NotFound}.get(status, discord.HTTPException)
    return cls(response, text)


@pytest.fixture
def make_http_error():
    return http_error
