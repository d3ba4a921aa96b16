"""
QuestionBot - Question Store
============================

Per-channel question rotation and per-user state, stored through the
SQLite facade.

Each channel has two question pools (regular and "shallow"). A pool keeps
two counters in channel_info: the id the next saved question receives and
the id of the next question to post. Posting a question only advances the
post counter; questions are never deleted.
"""

from typing import Any, Dict, List, Optional, Tuple

from questionbot.core import messages
from questionbot.core.emojis import DOWNVOTE_EMOJI, UPVOTE_EMOJI
from questionbot.core.logger import logger
from questionbot.services.database.core import SqliteDatabase, build_key_value_string, quote
from questionbot.services.database.schema import (
    CHANNEL_INFO_TABLE,
    QUESTIONS_TABLE,
    SCHEMA,
    SHALLOW_QUESTIONS_TABLE,
    USER_INFO_TABLE,
)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_REACT_COUNT: int = 3


def default_channel_info(channel_id: int) -> Dict[str, Any]:
    """Row inserted for a channel the bot has never seen before."""
    return {
        "channel": channel_id,
        "react_count": DEFAULT_REACT_COUNT,
        "upvote_id": UPVOTE_EMOJI,
        "downvote_id": DOWNVOTE_EMOJI,
        "question_of_the_day": None,
        "next_question_to_post_id": 1,
        "next_question_to_save_id": 1,
        "next_shallow_question_to_post_id": 1,
        "next_shallow_question_to_save_id": 1,
        "is_question_shallow": False,
        "asked": False,
        "version_text": None,
    }


def _pool(shallow: bool) -> Tuple[str, str, str]:
    """Table, save counter and post counter of a question pool."""
    if shallow:
        return (
            SHALLOW_QUESTIONS_TABLE,
            "next_shallow_question_to_save_id",
            "next_shallow_question_to_post_id",
        )
    return QUESTIONS_TABLE, "next_question_to_save_id", "next_question_to_post_id"


class UnknownChannelError(LookupError):
    """Raised when an operation needs a channel that was never registered."""
    pass


# =============================================================================
# Question Store
# =============================================================================

class QuestionStore:
    """Channel, question and user records for the daily question bot."""

    def __init__(self, db: SqliteDatabase) -> None:
        self.db = db

    def init(self) -> None:
        """Create the store's tables if they do not exist yet."""
        self.db.init_tables(SCHEMA)

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    def _channel(self, channel_id: int) -> Dict[str, Any]:
        info = self.db.find_one(CHANNEL_INFO_TABLE, {"channel": channel_id})
        if info is None:
            raise UnknownChannelError(f"Channel {channel_id} is not registered")
        return info

    def _set_channel(self, channel_id: int, **values: Any) -> None:
        self.db.update(CHANNEL_INFO_TABLE, values, {"channel": channel_id})

    def get_channel_info(
        self,
        channel_id: int,
        is_check: bool = False,
    ) -> Tuple[Optional[Dict[str, Any]], bool]:
        """
        Look up a channel, registering it unless ``is_check`` is set.

        Returns:
            (info, is_new). ``info`` is None only when checking an unknown channel.
        """
        info = self.db.find_one(CHANNEL_INFO_TABLE, {"channel": channel_id})
        if info is not None:
            return info, False
        if is_check:
            return None, False

        with self.db.transaction():
            self.db.insert(CHANNEL_INFO_TABLE, default_channel_info(channel_id))
            self.add_question(channel_id, messages.STARTER_QUESTION, messages.STARTER_AUTHOR)

        logger.tree("Channel Registered", [
            ("Channel", channel_id),
        ], emoji="📌")
        return self._channel(channel_id), True

    def get_all_channels(self) -> List[int]:
        """IDs of every registered channel."""
        return [row["channel"] for row in self.db.find(CHANNEL_INFO_TABLE)]

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    def add_question(
        self,
        channel_id: int,
        question: str,
        author: Any,
        shallow: bool = False,
    ) -> int:
        """
        Queue a question for a channel.

        The row and the advanced save counter are written in one transaction.

        Returns:
            The question id assigned within the channel's pool
        """
        table, save_column, _ = _pool(shallow)

        with self.db.transaction():
            question_id = self._channel(channel_id)[save_column]
            self.db.insert(table, {
                "channel": channel_id,
                "question": question,
                "author": str(author),
                "question_id": question_id,
            })
            self._set_channel(channel_id, **{save_column: question_id + 1})

        logger.tree("Question Saved", [
            ("Channel", channel_id),
            ("Question ID", question_id),
            ("Shallow", shallow),
            ("Author", author),
        ], emoji="❓")
        return question_id

    def get_next_question(
        self,
        channel_id: int,
        check: bool = False,
        should_flip: bool = False,
    ) -> Optional[Tuple[Dict[str, Any], bool]]:
        """
        Fetch the channel's next question.

        Args:
            channel_id: The channel to fetch for
            check: Only peek; do not advance counters or flip the pool
            should_flip: Use (and switch to) the other question pool

        Returns:
            (question row, shallow) or None when the pool is exhausted
        """
        with self.db.transaction():
            info = self._channel(channel_id)
            shallow = bool(info["is_question_shallow"])
            if should_flip:
                shallow = not shallow

            table, _, post_column = _pool(shallow)
            question = self.db.find_one(table, {
                "channel": channel_id,
                "question_id": info[post_column],
            })

            if not check and should_flip:
                self._set_channel(channel_id, is_question_shallow=shallow)

            if question is None:
                return None

            if not check:
                self._set_channel(channel_id, **{post_column: info[post_column] + 1})
        return question, shallow

    # -------------------------------------------------------------------------
    # Question Of The Day
    # -------------------------------------------------------------------------

    def get_question_message_id(self, channel_id: int) -> Optional[int]:
        return self._channel(channel_id)["question_of_the_day"]

    def set_question_message_id(self, channel_id: int, message_id: Optional[int]) -> Optional[int]:
        """Remember the bot message currently standing for the channel's question."""
        self._set_channel(channel_id, question_of_the_day=message_id)
        logger.tree("Daily Question Saved", [
            ("Channel", channel_id),
            ("Message ID", message_id),
        ], emoji="📌")
        return message_id

    def has_daily_question(self, channel_id: int) -> bool:
        return self.get_question_message_id(channel_id) is not None

    def get_asked(self, channel_id: int) -> bool:
        return bool(self._channel(channel_id)["asked"])

    def set_asked(self, channel_id: int, value: bool) -> None:
        self._set_channel(channel_id, asked=value)

    # -------------------------------------------------------------------------
    # Shallow Pool
    # -------------------------------------------------------------------------

    def get_is_shallow(self, channel_id: int) -> bool:
        return bool(self._channel(channel_id)["is_question_shallow"])

    def flip_shallow(self, channel_id: int) -> bool:
        """Switch the channel to the other question pool and return the new flag."""
        shallow = not self.get_is_shallow(channel_id)
        self._set_channel(channel_id, is_question_shallow=shallow)
        return shallow

    # -------------------------------------------------------------------------
    # Release Notes
    # -------------------------------------------------------------------------

    def get_version_text(self, channel_id: int) -> Optional[str]:
        return self._channel(channel_id)["version_text"]

    def set_version_text(self, channel_id: int, value: Optional[str]) -> None:
        self._set_channel(channel_id, version_text=value)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user_info(self, user_id: int) -> Tuple[Dict[str, Any], bool]:
        """
        Look up a user, creating the record on first contact.

        Returns:
            (info, was_there)
        """
        info = self.db.find_one(USER_INFO_TABLE, {"user": user_id})
        if info is not None:
            return info, True

        self.db.insert(USER_INFO_TABLE, {"user": user_id, "knows_secret": False})
        return {"user": user_id, "knows_secret": 0}, False

    def set_knows_secret(self, user_id: int, value: bool = True) -> None:
        self.db.update(USER_INFO_TABLE, {"knows_secret": value}, {"user": user_id})

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def perform_data_upgrade(self, channel_id: int) -> None:
        """Reset a channel's shallow pool state in one exclusive transaction."""
        self._channel(channel_id)
        values = build_key_value_string({
            "next_shallow_question_to_post_id": 1,
            "next_shallow_question_to_save_id": 1,
            "is_question_shallow": False,
        }, ", ")
        where = build_key_value_string({"channel": channel_id})
        self.db.atomic_query([
            f"UPDATE {quote(CHANNEL_INFO_TABLE)} SET {values} WHERE {where};",
        ])
        logger.tree("Channel Upgraded", [
            ("Channel", channel_id),
        ], emoji="🔧")


__all__ = [
    "QuestionStore",
    "UnknownChannelError",
    "DEFAULT_REACT_COUNT",
    "default_channel_info",
]
