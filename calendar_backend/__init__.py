"""
Calendar backend package.

Provides a FastAPI application for user signup/login and nested CRUD over the
calendars and events embedded in each user's record.
"""
