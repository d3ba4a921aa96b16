"""
QuestionBot - Database Schema
=============================

Tables used by the question store, as schema descriptor entries.
"""

from questionbot.services.database.core import TableSchema


# =============================================================================
# Table Names
# =============================================================================

CHANNEL_INFO_TABLE = "channel_info"
QUESTIONS_TABLE = "questions"
SHALLOW_QUESTIONS_TABLE = "shallow_questions"
USER_INFO_TABLE = "user_info"


# =============================================================================
# Schema Descriptor
# =============================================================================

_QUESTION_COLUMNS = (
    ("channel", "INTEGER NOT NULL"),
    ("question", "TEXT NOT NULL"),
    ("author", "TEXT"),
    ("question_id", "INTEGER NOT NULL"),
)

SCHEMA: list[TableSchema] = [
    TableSchema(CHANNEL_INFO_TABLE, (
        ("channel", "INTEGER PRIMARY KEY"),
        ("react_count", "INTEGER NOT NULL"),
        ("upvote_id", "TEXT NOT NULL"),
        ("downvote_id", "TEXT NOT NULL"),
        ("question_of_the_day", "INTEGER"),
        ("next_question_to_post_id", "INTEGER NOT NULL"),
        ("next_question_to_save_id", "INTEGER NOT NULL"),
        ("next_shallow_question_to_post_id", "INTEGER NOT NULL"),
        ("next_shallow_question_to_save_id", "INTEGER NOT NULL"),
        ("is_question_shallow", "INTEGER NOT NULL"),
        ("asked", "INTEGER NOT NULL"),
        ("version_text", "TEXT"),
    )),
    TableSchema(QUESTIONS_TABLE, _QUESTION_COLUMNS),
    TableSchema(SHALLOW_QUESTIONS_TABLE, _QUESTION_COLUMNS),
    TableSchema(USER_INFO_TABLE, (
        ("user", "INTEGER PRIMARY KEY"),
        ("knows_secret", "INTEGER NOT NULL"),
    )),
]


__all__ = [
    "CHANNEL_INFO_TABLE",
    "QUESTIONS_TABLE",
    "SHALLOW_QUESTIONS_TABLE",
    "USER_INFO_TABLE",
    "SCHEMA",
]
