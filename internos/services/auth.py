"""
Account registration and login.
"""

import logging
from typing import Optional, Dict, Any

from ..database.repositories.users import get_user_repository, UserRepository
from ..database.exceptions import DatabaseConstraintError
from ..database.models import UserRoleEnum, UserDB
from ..security.passwords import hash_password, verify_password
from ..security.tokens import create_access_token
from ..monitoring import login_failures_total
from .exceptions import ConflictError, UnauthorizedError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for registration and credential checks."""

    def __init__(self):
        self.users: UserRepository = get_user_repository()

    async def register(
        self,
        full_name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> UserDB:
        """
        Create an account. The role defaults to Intern when absent or unparseable.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.users.get_by_email(email):
            raise ConflictError("User with this email already exists.")

        parsed_role = UserRoleEnum.parse(role) or UserRoleEnum.INTERN

        try:
            user = await self.users.create(
                full_name=full_name,
                email=email,
                password_hash=hash_password(password),
                role=parsed_role,
            )
        except DatabaseConstraintError as e:
            # Lost a race with a concurrent registration
            raise ConflictError("User with this email already exists.") from e

        logger.info(f"Registered user {user.id} as {parsed_role.value}")
        return user

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and issue a token.

        Returns:
            {"id", "token", "full_name", "role"}

        Raises:
            UnauthorizedError: On unknown email or wrong password
        """
        user = await self.users.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            login_failures_total.inc()
            logger.warning(f"Failed login for {email}")
            raise UnauthorizedError("Invalid email or password.")

        logger.info(f"User {user.id} logged in")
        return {
            "id": user.id,
            "token": create_access_token(user),
            "full_name": user.full_name,
            "role": user.role,
        }


# Singleton
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
