"""
QuestionBot - Messages
======================

User-facing text posted by the bot.
"""


# =============================================================================
# Daily Question
# =============================================================================

QUESTION_PREFIX = "***Today's question is: ***"

ALL_OUT = (
    "I'm all out of questions! Slide into my DMs with a question in "
    "\"double quotes\" and I'll ask it here."
)

NEW_QUESTION_ARRIVED = (
    "Somebody just sent me a new question! React below if you want to hear it."
)

# First question seeded into every new channel
STARTER_QUESTION = "What's something small that made you happy this week?"
STARTER_AUTHOR = "<3"


# =============================================================================
# Channel Setup
# =============================================================================

INTRODUCE_YOURSELF = "Question bot, introduce yourself!"

DONT_PURGE = (
    "Hi! I post a question here every day. Vote it down if you don't like it "
    "and I'll pick another one. DM me questions in \"double quotes\" to add them."
)

WHAT_HAPPENED = "I've been updated! Here's what changed:\n"


# =============================================================================
# Direct Messages
# =============================================================================

GREETINGS_USER = (
    "Hello there! Send me questions wrapped in \"double quotes\" and I'll add "
    "them to the daily rotation."
)

SECRET_PART_ONE = "Can I tell you a secret?"

SECRET_PART_TWO = "Sometimes I run out of questions and get a little lonely. Thanks for talking to me."

IDLE_REPLY = "...  :3"

QUESTION_RECEIVED = "Got it! Your question is in the queue."

QUESTIONS_RECEIVED = "Got them! Your questions are in the queue."


__all__ = [
    "QUESTION_PREFIX",
    "ALL_OUT",
    "NEW_QUESTION_ARRIVED",
    "STARTER_QUESTION",
    "STARTER_AUTHOR",
    "INTRODUCE_YOURSELF",
    "DONT_PURGE",
    "WHAT_HAPPENED",
    "GREETINGS_USER",
    "SECRET_PART_ONE",
    "SECRET_PART_TWO",
    "IDLE_REPLY",
    "QUESTION_RECEIVED",
    "QUESTIONS_RECEIVED",
]
