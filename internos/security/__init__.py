"""Authentication: password hashing, bearer tokens and role checks."""

from .passwords import hash_password, verify_password
from .tokens import TokenClaims, TokenError, create_access_token, decode_access_token
from .dependencies import CurrentUser, get_current_user, require_roles

__all__ = [
    "hash_password",
    "verify_password",
    "TokenClaims",
    "TokenError",
    "create_access_token",
    "decode_access_token",
    "CurrentUser",
    "get_current_user",
    "require_roles",
]
