"""
QuestionBot - Message Handler
=============================

Question submissions over DM and channel introductions.
"""

import asyncio
from typing import TYPE_CHECKING

import discord

from questionbot.core import messages
from questionbot.core.config import DM_READ_DELAY, DM_TYPING_DELAY, SECRET_TYPING_DELAY
from questionbot.core.logger import logger
from questionbot.posting.daily_question import announce_new_question, post_new_question
from questionbot.utils.discord_rate_limit import log_http_error
from questionbot.utils.helpers import extract_questions, truncate

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


# =============================================================================
# Direct Messages
# =============================================================================

async def _reply_without_questions(bot: "QuestionBot", message: discord.Message, user_info: dict, was_there: bool) -> None:
    channel = message.channel

    if not was_there:
        await channel.send(messages.GREETINGS_USER)
        return

    if user_info["knows_secret"]:
        await channel.send(messages.IDLE_REPLY)
        return

    await channel.send(messages.SECRET_PART_ONE)
    async with channel.typing():
        await asyncio.sleep(SECRET_TYPING_DELAY)
    await channel.send(messages.SECRET_PART_TWO)
    bot.store.set_knows_secret(message.author.id)


async def handle_direct_message(bot: "QuestionBot", message: discord.Message) -> int:
    """
    Store every "quoted" question of a DM in all channels and answer the user.

    Channels without a current question message get a prompt announcing the
    new question.

    Returns:
        Number of questions received
    """
    store = bot.store

    await asyncio.sleep(DM_READ_DELAY)
    async with message.channel.typing():
        await asyncio.sleep(DM_TYPING_DELAY)

    user_info, was_there = store.get_user_info(message.author.id)
    questions = extract_questions(message.content)
    channels = store.get_all_channels()

    for question in questions:
        for channel_id in channels:
            store.add_question(channel_id, question, message.author.id)

    try:
        if not questions:
            await _reply_without_questions(bot, message, user_info, was_there)
            return 0
        await message.channel.send(
            messages.QUESTIONS_RECEIVED if len(questions) > 1 else messages.QUESTION_RECEIVED
        )
    except discord.HTTPException as e:
        log_http_error(e, "Reply To DM", [("User", str(message.author.id))])

    if not questions:
        return 0

    logger.tree("Questions Submitted", [
        ("User", f"{message.author.name} ({message.author.id})"),
        ("Questions", len(questions)),
        ("Channels", len(channels)),
    ], emoji="📨")

    for channel_id in channels:
        if store.has_daily_question(channel_id):
            continue
        channel = bot.get_channel(channel_id)
        if channel is None:
            continue
        await announce_new_question(bot, channel)

    return len(questions)


# =============================================================================
# Message Handler
# =============================================================================

async def on_message_handler(bot: "QuestionBot", message: discord.Message) -> None:
    """
    Event handler for every message the bot can see.

    Args:
        bot: The QuestionBot instance
        message: The received message
    """
    if message.author.bot:
        return

    logger.debug("Message Received", [
        ("Author", f"{message.author.name} ({message.author.id})"),
        ("Channel", str(message.channel.id)),
        ("Content", truncate(message.content, 100)),
    ])

    if isinstance(message.channel, discord.DMChannel):
        await handle_direct_message(bot, message)
        return

    if message.content != messages.INTRODUCE_YOURSELF:
        return

    try:
        await message.channel.send(messages.DONT_PURGE)
    except discord.HTTPException as e:
        log_http_error(e, "Introduce Bot", [("Channel", str(message.channel.id))])
        return
    await post_new_question(bot, message.channel)


__all__ = ["handle_direct_message", "on_message_handler"]
