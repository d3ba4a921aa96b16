"""
QuestionBot - Database Module
=============================

SQLite persistence for the bot.

Structure:
    - core.py: Query builders and the SqliteDatabase CRUD facade
    - schema.py: Table definitions
    - questions.py: QuestionStore (channels, questions, users)
"""

from .core import (
    SqliteDatabase,
    TableSchema,
    RunResult,
    DatabaseError,
    QueryBuildError,
    InvalidIdentifierError,
    SchemaInitError,
    flatten,
    quote,
    quote_all,
    dequote_all,
    build_key_value_string,
    build_param_string,
    build_insert_query,
    build_select_query,
    build_update_query,
)
from .schema import SCHEMA
from .questions import QuestionStore, UnknownChannelError


def open_store(path) -> QuestionStore:
    """Open the database at ``path`` and return an initialized QuestionStore."""
    store = QuestionStore(SqliteDatabase(path))
    store.init()
    return store


__all__ = [
    "SqliteDatabase",
    "TableSchema",
    "RunResult",
    "DatabaseError",
    "QueryBuildError",
    "InvalidIdentifierError",
    "SchemaInitError",
    "flatten",
    "quote",
    "quote_all",
    "dequote_all",
    "build_key_value_string",
    "build_param_string",
    "build_insert_query",
    "build_select_query",
    "build_update_query",
    "SCHEMA",
    "QuestionStore",
    "UnknownChannelError",
    "open_store",
]
