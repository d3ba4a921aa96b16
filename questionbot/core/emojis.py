"""
QuestionBot - Emoji Constants
=============================

Default voting emojis and emoji comparison helpers.
"""

from typing import Union

import discord


# =============================================================================
# Voting Emojis
# =============================================================================

# Defaults for new channels; per-channel values live in channel_info
UPVOTE_EMOJI = "⬆"
DOWNVOTE_EMOJI = "⬇"

# Emoji presentation selector Discord may append to unicode emojis
VARIATION_SELECTOR = "\ufe0f"


# =============================================================================
# Helpers
# =============================================================================

def normalize_emoji(emoji: Union[str, discord.Emoji, discord.PartialEmoji, None]) -> str:
    """Render an emoji as a comparable string (``⬆️`` and ``⬆`` compare equal)."""
    if emoji is None:
        return ""
    return str(emoji).replace(VARIATION_SELECTOR, "")


def same_emoji(left, right) -> bool:
    """Check whether two emojis are the same after normalization."""
    return normalize_emoji(left) == normalize_emoji(right)


__all__ = [
    "UPVOTE_EMOJI",
    "DOWNVOTE_EMOJI",
    "normalize_emoji",
    "same_emoji",
]
