"""
Password hashing and signed identity tokens.

Passwords are hashed with bcrypt. Tokens are HS256 JWTs that carry the user's
primary key in ``sub`` and expire a fixed interval after issuance. Tokens are
only verified, never tracked server-side.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
import jwt

logger = logging.getLogger(__name__)

# Bcrypt work factor
BCRYPT_ROUNDS = 10

# bcrypt only accepts passwords up to this many bytes
MAX_PASSWORD_BYTES = 72

DEFAULT_TOKEN_TTL = timedelta(hours=1)


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a password using bcrypt with a fresh salt.

    Args:
        password: Plain text password
        rounds: Bcrypt cost factor

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    Returns False on mismatch and on a hash bcrypt cannot parse.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


class TokenService:
    """
    Issues and verifies identity tokens signed with an injected secret.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret_key:
            raise ValueError("A signing secret is required for TokenService")
        self.secret_key = secret_key
        self.ttl = ttl
        self.algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    def issue(self, user_id: str) -> str:
        now = self._clock()
        expires = now + self.ttl
        payload = {
            "sub": user_id,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Issued token for user: {user_id}, expires: {expires}")
        return token

    def verify(self, token: str) -> str:
        """
        Verify a token and return the user primary key it names.

        Raises:
            ExpiredTokenError: the token is past its expiry
            InvalidTokenError: the signature does not match
            MalformedTokenError: the token cannot be decoded or lacks claims
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidTokenError("Invalid signature") from e
        except (
            jwt.DecodeError,
            jwt.MissingRequiredClaimError,
            jwt.exceptions.InvalidSubjectError,
        ) as e:
            raise MalformedTokenError(f"Malformed token: {e}") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise MalformedTokenError("Malformed token: missing subject")
        return user_id
