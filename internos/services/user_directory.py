"""
User directory service.

Handles business logic for:
- Admin-side account management (create, update, list)
- Dependency reporting ahead of deletion
- Deletion, either outright or with reassignment of every dependent row
"""

import logging
from typing import Optional, Dict, Any, List

from ..database.repositories.users import get_user_repository, UserRepository
from ..database.exceptions import DatabaseConstraintError, EntityNotFoundError
from ..database.models import UserRoleEnum, UserDB
from ..security.passwords import hash_password
from .exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


class UserDirectoryService:
    """Service for user directory operations."""

    def __init__(self):
        self.users: UserRepository = get_user_repository()

    async def list_users(self) -> List[UserDB]:
        return await self.users.list_all()

    async def list_interns(self) -> List[UserDB]:
        return await self.users.list_by_role(UserRoleEnum.INTERN)

    async def list_mentors(self) -> List[UserDB]:
        return await self.users.list_by_role(UserRoleEnum.MENTOR)

    async def get_user(self, user_id: int) -> UserDB:
        user = await self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def create_user(
        self,
        full_name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> UserDB:
        """Admin-created account. Duplicate emails are a 400 here, not a 409."""
        if await self.users.email_in_use(email):
            raise BadRequestError("User with this email already exists")

        try:
            user = await self.users.create(
                full_name=full_name,
                email=email,
                password_hash=hash_password(password),
                role=UserRoleEnum.parse(role) or UserRoleEnum.INTERN,
            )
        except DatabaseConstraintError as e:
            raise BadRequestError("User with this email already exists") from e

        return user

    async def update_user(
        self,
        user_id: int,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> UserDB:
        """
        Partial update. Blank values are left unchanged and an unparseable
        role is ignored.
        """
        user = await self.get_user(user_id)

        new_email = email if email and email != user.email else None
        if new_email and await self.users.email_in_use(new_email, exclude_id=user_id):
            raise BadRequestError("Email already in use")

        parsed_role = UserRoleEnum.parse(role) if role else None

        try:
            updated = await self.users.update(
                user_id,
                full_name=full_name or None,
                email=new_email,
                role=parsed_role.value if parsed_role else None,
            )
        except DatabaseConstraintError as e:
            raise BadRequestError("Email already in use") from e

        if not updated:
            raise NotFoundError("User not found")
        return updated

    async def get_dependencies(self, user_id: int) -> Dict[str, Any]:
        """Dependency report for the admin delete dialog."""
        await self.get_user(user_id)

        counts = await self.users.count_dependencies(user_id)
        total_tasks = counts["assigned_tasks"] + counts["created_tasks"]
        total = total_tasks + counts["comments"] + counts["activities"]

        return {
            **counts,
            "total_tasks": total_tasks,
            "total_dependencies": total,
            "has_dependencies": total > 0,
        }

    async def delete_user(
        self,
        actor_id: int,
        user_id: int,
        reassign_to_user_id: Optional[int] = None,
    ) -> str:
        """
        Delete a user.

        Rules, checked in order:
        - nobody deletes their own account
        - the target must exist
        - the replacement cannot be the target
        - a user with dependent rows needs a replacement
        - the replacement must exist

        Returns:
            Confirmation message

        Raises:
            BadRequestError: When a rule above is broken
            NotFoundError: When the target does not exist
        """
        if actor_id == user_id:
            raise BadRequestError("You cannot delete your own account.")

        await self.get_user(user_id)

        if reassign_to_user_id is not None and reassign_to_user_id == user_id:
            raise BadRequestError("Replacement user cannot be the same as the user being deleted.")

        counts = await self.users.count_dependencies(user_id)
        has_dependencies = any(counts.values())

        if has_dependencies and reassign_to_user_id is None:
            raise BadRequestError(
                "Cannot delete user because related records exist. "
                "Provide reassignToUserId to transfer ownership.",
                extra={
                    "dependencies": {
                        "assignedTasks": counts["assigned_tasks"],
                        "createdTasks": counts["created_tasks"],
                        "comments": counts["comments"],
                        "activities": counts["activities"],
                    }
                },
            )

        if reassign_to_user_id is not None:
            if not await self.users.get_by_id(reassign_to_user_id):
                raise BadRequestError("Replacement user not found.")

            try:
                moved = await self.users.reassign_and_delete(user_id, reassign_to_user_id)
            except EntityNotFoundError as e:
                # Removed by someone else between the checks and the transaction
                raise BadRequestError(str(e)) from e

            logger.info(f"User {actor_id} deleted user {user_id}, moved {moved} to {reassign_to_user_id}")
            return "User reassigned and deleted successfully."

        try:
            deleted = await self.users.delete(user_id)
        except DatabaseConstraintError as e:
            raise BadRequestError(
                "Cannot delete user because related records exist.",
                extra={"error": str(e)},
            ) from e

        if not deleted:
            raise NotFoundError("User not found")

        logger.info(f"User {actor_id} deleted user {user_id}")
        return "User deleted successfully"


# Singleton
_user_directory_service: Optional[UserDirectoryService] = None


def get_user_directory_service() -> UserDirectoryService:
    """Get the user directory service singleton."""
    global _user_directory_service
    if _user_directory_service is None:
        _user_directory_service = UserDirectoryService()
    return _user_directory_service
