"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from fastapi import Depends

from calendar_backend.calendars import CalendarService
from calendar_backend.config import get_settings
from calendar_backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from calendar_backend.security import TokenService

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_token_service: TokenService | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so user records persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_token_service() -> TokenService:
    """
    Return the process-wide token service, built once from settings.
    """
    global _token_service
    if _token_service:
        return _token_service

    settings = get_settings()
    secret = settings.jwt_secret
    if not secret:
        logger.warning(
            "No JWT_SECRET provided - using generated secret. "
            "Tokens will not survive a restart."
        )
        secret = secrets.token_urlsafe(64)
    _token_service = TokenService(
        secret, ttl=timedelta(seconds=settings.token_ttl_seconds)
    )
    return _token_service


def get_calendar_service(db: DbClient = Depends(get_db_client)) -> CalendarService:
    return CalendarService(db)
