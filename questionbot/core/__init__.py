"""
QuestionBot - Core Package
==========================

Configuration, logging, message texts and the health check server.
"""
