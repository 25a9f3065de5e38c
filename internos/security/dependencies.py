"""
FastAPI dependencies for authentication and role checks.

Usage:
    @router.get("/users")
    async def list_users(user: CurrentUser = Depends(require_roles(UserRoleEnum.ADMIN))):
        ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..database.models import UserRoleEnum
from ..services.exceptions import UnauthorizedError, ForbiddenError
from .tokens import TokenClaims, TokenError, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)

# The caller's identity is exactly what the token says
CurrentUser = TokenClaims


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Resolve the caller from the Authorization header, else 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Authentication required")

    try:
        return decode_access_token(credentials.credentials)
    except TokenError as e:
        raise UnauthorizedError(str(e)) from e


def require_roles(*roles: UserRoleEnum):
    """Dependency factory: authenticated caller whose role is one of `roles`."""
    allowed = {role.value for role in roles}

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise ForbiddenError("You do not have permission to perform this action")
        return user

    return checker
