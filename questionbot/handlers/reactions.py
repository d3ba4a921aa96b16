"""
QuestionBot - Reaction Handler
==============================

Vote tallying on the question of the day.

Two kinds of bot message can be a channel's current question message:

- a question: it is replaced once downvotes outnumber upvotes by the
  channel's ``react_count``
- a "new question arrived" prompt (the *asked* state): the queued question
  is posted once ``react_count`` people besides the bot upvote it
"""

from typing import TYPE_CHECKING, Iterable

import discord

from questionbot.core.emojis import same_emoji
from questionbot.core.logger import logger
from questionbot.posting.daily_question import post_new_question

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


def vote_difference(reactions: Iterable[discord.Reaction], upvote: str, downvote: str) -> int:
    """Downvote count minus upvote count over a message's reactions."""
    diff = 0
    for reaction in reactions:
        if same_emoji(reaction.emoji, upvote):
            diff -= reaction.count
        elif same_emoji(reaction.emoji, downvote):
            diff += reaction.count
    return diff


async def handle_reaction(bot: "QuestionBot", reaction: discord.Reaction) -> bool:
    """
    Decide whether a reaction change should advance the channel's question.

    Args:
        bot: The QuestionBot instance
        reaction: The reaction that was added or removed

    Returns:
        True if a new question was posted
    """
    message = reaction.message
    channel_id = message.channel.id

    info, _ = bot.store.get_channel_info(channel_id, is_check=True)
    if info is None:
        return False

    if bot.user is None or message.author.id != bot.user.id:
        return False
    if info["question_of_the_day"] != message.id:
        return False

    if info["asked"]:
        triggered = (
            same_emoji(reaction.emoji, info["upvote_id"])
            and reaction.count == info["react_count"] + 1
        )
    else:
        diff = vote_difference(message.reactions, info["upvote_id"], info["downvote_id"])
        triggered = diff == info["react_count"]

    if not triggered:
        return False

    logger.tree("Vote Threshold Reached", [
        ("Channel", channel_id),
        ("Message ID", message.id),
        ("Mode", "Prompt" if info["asked"] else "Question"),
    ], emoji="🗳️")
    await post_new_question(bot, message.channel)
    return True


async def on_reaction_add_handler(
    bot: "QuestionBot",
    reaction: discord.Reaction,
    user: discord.User,
) -> None:
    """Event handler for reactions added to a cached message."""
    await handle_reaction(bot, reaction)


async def on_reaction_remove_handler(
    bot: "QuestionBot",
    reaction: discord.Reaction,
    user: discord.User,
) -> None:
    """Event handler for reactions removed from a cached message."""
    await handle_reaction(bot, reaction)


__all__ = [
    "vote_difference",
    "handle_reaction",
    "on_reaction_add_handler",
    "on_reaction_remove_handler",
]
