"""Tests for text, emoji and Discord API helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from questionbot.core.emojis import DOWNVOTE_EMOJI, UPVOTE_EMOJI, normalize_emoji, same_emoji
from questionbot.utils.discord_rate_limit import add_reactions_with_delay
from questionbot.utils.helpers import extract_questions, safe_fetch_message, truncate


@pytest.mark.parametrize("content, expected", [
    ('"Why is the sky blue?"', ["Why is the sky blue?"]),
    ('two: "one?" and "two?"', ["one?", "two?"]),
    ('  "  padded?  " ', ["padded?"]),
    ('no quotes here', []),
    ('unbalanced "quote', []),
    ('""', []),
    ("", []),
])
def test_extract_questions(content, expected):
    assert extract_questions(content) == expected


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("a" * 20, 10) == "aaaaaaa..."
    assert truncate("", 5) == ""


def test_emoji_normalization():
    assert normalize_emoji(UPVOTE_EMOJI + "\ufe0f") == UPVOTE_EMOJI
    assert normalize_emoji(None) == ""
    assert same_emoji(DOWNVOTE_EMOJI + "\ufe0f", DOWNVOTE_EMOJI)
    assert not same_emoji(UPVOTE_EMOJI, DOWNVOTE_EMOJI)


@pytest.mark.asyncio
class TestDiscordCalls:
    async def test_safe_fetch_message_returns_none_on_errors(self, make_http_error):
        channel = MagicMock()
        for status in (404, 403, 500):
            channel.fetch_message = AsyncMock(side_effect=make_http_error(status))
            assert await safe_fetch_message(channel, 1) is None

    async def test_safe_fetch_message(self):
        channel = MagicMock()
        channel.fetch_message = AsyncMock(return_value="message")
        assert await safe_fetch_message(channel, 1) == "message"

    async def test_reactions_are_added_in_order(self, make_message, no_sleep):
        message = make_message()

        assert await add_reactions_with_delay(message, [UPVOTE_EMOJI, DOWNVOTE_EMOJI]) == [True, True]
        assert [call.args[0] for call in message.add_reaction.await_args_list] == [UPVOTE_EMOJI, DOWNVOTE_EMOJI]

    async def test_rate_limited_reaction_is_retried_once(self, make_message, make_http_error, no_sleep):
        message = make_message()
        message.add_reaction = AsyncMock(side_effect=[make_http_error(429), None])

        assert await add_reactions_with_delay(message, [UPVOTE_EMOJI]) == [True]
        assert message.add_reaction.await_count == 2

    async def test_forbidden_reaction_is_reported(self, make_message, make_http_error, no_sleep):
        message = make_message()
        message.add_reaction = AsyncMock(side_effect=make_http_error(403))

        assert await add_reactions_with_delay(message, [UPVOTE_EMOJI]) == [False]
