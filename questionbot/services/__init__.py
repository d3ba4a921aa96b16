"""
QuestionBot - Services Package
==============================

Persistence and scheduling services.
"""
