"""
Auth gate for protected routes.

Used as a FastAPI dependency: it either yields the authenticated user's
primary key or raises, so handlers never run half-authenticated.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header

from calendar_backend.dependencies import get_token_service
from calendar_backend.errors import ForbiddenError, UnauthenticatedError
from calendar_backend.security import TokenError, TokenService

logger = logging.getLogger(__name__)


def extract_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthenticatedError("No authorization header")
    parts = authorization.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    if not token:
        raise UnauthenticatedError("No token provided")
    return token


def require_identity(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    token = extract_token(authorization)
    try:
        return tokens.verify(token)
    except TokenError as exc:
        logger.warning("Token verification failed: %s", exc)
        raise ForbiddenError("Invalid token", details=str(exc)) from exc
