# coursehub/core/security.py
"""Bearer token verification.

Tokens are issued by the account service; this module only verifies them.
The payload carries ``id`` (user UUID) and ``role`` (``tutor`` or ``student``).
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID
import logging

import jwt
from fastapi import Header

from .config import settings
from .exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: UUID
    role: str


def decode_access_token(token: Optional[str]) -> AuthenticatedUser:
    """Verify a JWT and return the user it was issued for."""
    if not token:
        raise UnauthorizedError("Authentication token missing")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Authentication token expired")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected access token: {e}")
        raise UnauthorizedError("Invalid authentication token")

    try:
        user_id = UUID(str(payload["id"]))
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid authentication token")

    return AuthenticatedUser(id=user_id, role=payload.get("role", "student"))


async def get_current_user(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> AuthenticatedUser:
    """Require an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise UnauthorizedError("Authorization header required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Authorization header must use the Bearer scheme")

    return decode_access_token(token.strip())
