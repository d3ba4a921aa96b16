"""
QuestionBot - Posting Package
=============================

Question posting to channels.
"""

from questionbot.posting.daily_question import (
    post_new_question,
    announce_new_question,
    post_to_all_channels,
)

__all__ = [
    "post_new_question",
    "announce_new_question",
    "post_to_all_channels",
]
