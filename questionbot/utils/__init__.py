"""
QuestionBot - Utilities Package
===============================
"""

from .discord_rate_limit import add_reactions_with_delay, log_http_error
from .helpers import extract_questions, safe_fetch_message, truncate
from .release_notes import extract_release_notes, read_release_notes

__all__ = [
    "add_reactions_with_delay",
    "log_http_error",
    "extract_questions",
    "safe_fetch_message",
    "truncate",
    "extract_release_notes",
    "read_release_notes",
]
