"""
Bearer token issuing and validation.

Tokens are HS256 JWTs signed with the configured key. Claims:
sub (user id), email, role, fullName, iss, aud, iat, exp.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt

from config import settings
from ..database.models import UserDB
from ..utils.datetime_utils import utc_now, to_aware_utc

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Token is missing, malformed, expired or wrongly signed."""
    pass


@dataclass
class TokenClaims:
    user_id: int
    email: str
    role: str
    full_name: str


def _signing_key() -> str:
    if not settings.jwt_key:
        raise RuntimeError("JWT_KEY not configured")
    return settings.jwt_key


def create_access_token(user: UserDB) -> str:
    """Issue a signed token for a user, valid for `token_lifetime_hours`."""
    issued_at = to_aware_utc(utc_now())
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "fullName": user.full_name,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.token_lifetime_hours),
    }
    return jwt.encode(payload, _signing_key(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: Optional[str]) -> TokenClaims:
    """
    Validate signature, expiry, issuer and audience.

    Raises:
        TokenError: If the token is not acceptable
    """
    if not token:
        raise TokenError("Missing token")

    try:
        payload = jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token expired") from e
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise TokenError("Invalid token") from e

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenError("Invalid subject claim") from e

    return TokenClaims(
        user_id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        full_name=payload.get("fullName", ""),
    )
