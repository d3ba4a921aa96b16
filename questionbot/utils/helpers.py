"""
QuestionBot - Helper Utilities
==============================

Common helpers used by the handlers.
"""

import re
from typing import List, Optional

import discord

from questionbot.core.logger import logger


# Questions are submitted as "double quoted" text; each pair is one question
QUESTION_PATTERN = re.compile(r'".*?"')


# =============================================================================
# Safe Discord API Fetch Helpers
# =============================================================================

async def safe_fetch_message(
    channel: discord.abc.Messageable,
    message_id: int,
) -> Optional[discord.Message]:
    """
    Fetch a message, returning None instead of raising on API errors.

    Args:
        channel: The channel to fetch from
        message_id: The message ID to fetch
    """
    try:
        return await channel.fetch_message(message_id)
    except discord.NotFound:
        logger.debug("Message Not Found", [
            ("Message ID", str(message_id)),
        ])
        return None
    except discord.Forbidden:
        logger.warning("No Permission To Fetch Message", [
            ("Message ID", str(message_id)),
        ])
        return None
    except discord.HTTPException as e:
        logger.warning("HTTP Error Fetching Message", [
            ("Message ID", str(message_id)),
            ("Error", str(e)),
        ])
        return None


# =============================================================================
# Text Helpers
# =============================================================================

def extract_questions(content: str) -> List[str]:
    """
    Pull every double-quoted question out of a message.

    ``'add "Why?" and "How?"'`` -> ``["Why?", "How?"]``. Empty quotes are skipped.
    """
    found = (match[1:-1].strip() for match in QUESTION_PATTERN.findall(content or ""))
    return [question for question in found if question]


def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    """Truncate text to ``max_length`` characters, ellipsis included."""
    if not text or len(text) <= max_length:
        return text
    return text[:max_length - len(ellipsis)] + ellipsis


__all__ = [
    "QUESTION_PATTERN",
    "safe_fetch_message",
    "extract_questions",
    "truncate",
]
