"""
QuestionBot - Schedulers Package
================================

Task scheduling for daily question posting.
"""

from questionbot.services.schedulers.daily import DailyQuestionScheduler

__all__ = ["DailyQuestionScheduler"]
