"""
QuestionBot - Daily Question Posting
====================================

Posts the next question of a channel and prompts channels that ran dry.
"""

from typing import TYPE_CHECKING

import discord

from questionbot.core import messages
from questionbot.core.logger import logger
from questionbot.utils.discord_rate_limit import add_reactions_with_delay, log_http_error
from questionbot.utils.helpers import safe_fetch_message, truncate

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


# =============================================================================
# Question Posting
# =============================================================================

async def _unpin_previous(channel: discord.abc.Messageable, message_id: int) -> None:
    """Unpin the channel's previous question message if it is still pinned."""
    previous = await safe_fetch_message(channel, message_id)
    if previous is None or not previous.pinned:
        return
    try:
        await previous.unpin()
    except discord.HTTPException as e:
        log_http_error(e, "Unpin Question", [("Message ID", str(message_id))])


async def post_new_question(bot: "QuestionBot", channel: discord.abc.Messageable) -> None:
    """
    Replace the channel's question of the day with the next queued question.

    Args:
        bot: The QuestionBot instance
        channel: The text channel to post in

    Registers unknown channels on the way. When the queue is empty the bot
    says so and forgets the previous question message, which lets the next
    DM submission announce itself in this channel.
    """
    store = bot.store
    info, is_new = store.get_channel_info(channel.id)

    if info["question_of_the_day"] is not None:
        await _unpin_previous(channel, info["question_of_the_day"])

    next_question = store.get_next_question(channel.id)

    try:
        if next_question is None:
            await channel.send(messages.ALL_OUT)
            store.set_question_message_id(channel.id, None)
            logger.tree("Out Of Questions", [
                ("Channel", channel.id),
            ], emoji="📭")
            return

        question, shallow = next_question
        message = await channel.send(f"{messages.QUESTION_PREFIX}{question['question']}")
        store.set_question_message_id(channel.id, message.id)
        store.set_asked(channel.id, False)

        await add_reactions_with_delay(message, [info["upvote_id"], info["downvote_id"]])
        try:
            await message.pin()
        except discord.HTTPException as e:
            log_http_error(e, "Pin Question", [("Message ID", str(message.id))])

        logger.tree("Question Posted", [
            ("Channel", channel.id),
            ("Question ID", question["question_id"]),
            ("Question", truncate(question["question"], 50)),
            ("Shallow", shallow),
            ("New Channel", is_new),
        ], emoji="❓")

    except discord.HTTPException as e:
        log_http_error(e, "Send Question", [("Channel", str(channel.id))])


async def announce_new_question(bot: "QuestionBot", channel: discord.abc.Messageable) -> None:
    """
    Tell a channel without a current question that a new one arrived.

    The prompt becomes the channel's question message in the *asked* state;
    enough upvotes on it post the queued question.
    """
    store = bot.store
    info, _ = store.get_channel_info(channel.id)

    try:
        message = await channel.send(messages.NEW_QUESTION_ARRIVED)
    except discord.HTTPException as e:
        log_http_error(e, "Announce New Question", [("Channel", str(channel.id))])
        return

    store.set_question_message_id(channel.id, message.id)
    store.set_asked(channel.id, True)
    await add_reactions_with_delay(message, [info["upvote_id"]])

    logger.tree("New Question Announced", [
        ("Channel", channel.id),
        ("Message ID", message.id),
    ], emoji="📬")


async def post_to_all_channels(bot: "QuestionBot") -> int:
    """
    Post a new question in every registered channel the bot can see.

    Returns:
        Number of channels posted to
    """
    posted = 0
    for channel_id in bot.store.get_all_channels():
        channel = bot.get_channel(channel_id)
        if channel is None:
            logger.warning("Channel Not Found", [
                ("Channel", channel_id),
            ])
            continue
        await post_new_question(bot, channel)
        posted += 1
    return posted


__all__ = ["post_new_question", "announce_new_question", "post_to_all_channels"]
