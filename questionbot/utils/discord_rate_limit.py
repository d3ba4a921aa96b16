"""
QuestionBot - Discord Rate Limit Utilities
==========================================

HTTP error logging and rate-limit friendly reaction helpers.
"""

import asyncio
from typing import List, Optional, Union

import discord

from questionbot.core.config import REACTION_DELAY
from questionbot.core.logger import logger


HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[list] = None,
) -> None:
    """
    Log a Discord HTTPException with status details.

    Args:
        e: The HTTPException that occurred
        operation: What failed (e.g., "Send Question", "Pin Message")
        context: Additional (key, value) tuples
    """
    status = getattr(e, "status", 0)
    log_items = [
        ("Status", f"{status} ({HTTP_STATUS_DESCRIPTIONS.get(status, 'Unknown')})"),
        ("Error", getattr(e, "text", None) or str(e)),
    ]
    if context:
        log_items.extend(context)

    # Rate limits and permission problems are recoverable
    if status in (403, 404, 429):
        logger.warning(f"{operation} Failed", log_items)
    else:
        logger.error(f"{operation} Failed", log_items)


async def add_reactions_with_delay(
    message: discord.Message,
    emojis: List[Union[str, discord.Emoji]],
    delay: float = REACTION_DELAY,
) -> List[bool]:
    """
    Add reactions one at a time, retrying once when rate limited.

    Returns:
        Success status for each emoji
    """
    results = []

    for i, emoji in enumerate(emojis):
        try:
            await message.add_reaction(emoji)
            results.append(True)
        except discord.HTTPException as e:
            if e.status == 429:
                await asyncio.sleep(getattr(e, "retry_after", None) or delay * 2)
                try:
                    await message.add_reaction(emoji)
                    results.append(True)
                except discord.HTTPException:
                    results.append(False)
            else:
                log_http_error(e, "Add Reaction", [("Emoji", str(emoji))])
                results.append(False)

        if i < len(emojis) - 1:
            await asyncio.sleep(delay)

    return results


__all__ = ["log_http_error", "add_reactions_with_delay", "HTTP_STATUS_DESCRIPTIONS"]
