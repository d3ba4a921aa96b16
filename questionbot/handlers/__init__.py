"""
QuestionBot - Event Handlers
============================

Discord event handlers, each taking the bot as first argument.
"""

from questionbot.handlers.messages import on_message_handler
from questionbot.handlers.reactions import on_reaction_add_handler, on_reaction_remove_handler
from questionbot.handlers.ready import on_ready_handler
from questionbot.handlers.shutdown import shutdown_handler

__all__ = [
    "on_message_handler",
    "on_reaction_add_handler",
    "on_reaction_remove_handler",
    "on_ready_handler",
    "shutdown_handler",
]
