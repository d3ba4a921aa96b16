"""
QuestionBot
===========

Discord bot that posts one community-submitted question a day.
"""

__version__ = "2.0.0"
