"""
User repository.

Handles:
- Account CRUD and lookups by email / role
- Dependency counting ahead of deletion
- Deletion with reassignment of every dependent row, in one transaction
"""

import logging
from typing import Optional, List, Dict

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from .base import BaseRepository
from ..models import UserDB, TaskDB, CommentDB, ActivityLogDB, MessageDB, UserRoleEnum
from ..exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
)
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Comparison form of an email address."""
    return (email or "").strip().lower()


class UserRepository(BaseRepository):
    """Repository for user operations."""

    # ==================== USER CRUD ====================

    async def create(
        self,
        full_name: str,
        email: str,
        password_hash: str,
        role: UserRoleEnum = UserRoleEnum.INTERN,
    ) -> UserDB:
        """
        Create a user account.

        Raises:
            DatabaseConstraintError: If the email is already registered
        """
        async with self.db.session() as session:
            try:
                user = UserDB(
                    full_name=full_name,
                    email=email,
                    password_hash=password_hash,
                    role=role.value,
                    created_at=utc_now(),
                )
                session.add(user)
                await session.flush()

                logger.info(f"Created user {user.id} ({role.value})")
                return user

            except IntegrityError as e:
                logger.error(f"Constraint violation creating user: {e}")
                raise DatabaseConstraintError("Email already registered") from e

    async def get_by_id(self, user_id: int) -> Optional[UserDB]:
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB).where(UserDB.id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[UserDB]:
        """Case-insensitive email lookup; surrounding whitespace is ignored."""
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB).where(func.lower(UserDB.email) == normalize_email(email))
            )
            return result.scalars().first()

    async def email_in_use(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """True when another account already owns this email."""
        async with self.db.session() as session:
            query = select(func.count(UserDB.id)).where(func.lower(UserDB.email) == normalize_email(email))
            if exclude_id is not None:
                query = query.where(UserDB.id != exclude_id)
            result = await session.execute(query)
            return (result.scalar() or 0) > 0

    async def list_all(self) -> List[UserDB]:
        async with self.db.session() as session:
            result = await session.execute(select(UserDB).order_by(UserDB.id))
            return list(result.scalars().all())

    async def list_by_role(self, role: UserRoleEnum) -> List[UserDB]:
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB)
                .where(UserDB.role == role.value)
                .order_by(UserDB.full_name, UserDB.id)
            )
            return list(result.scalars().all())

    async def update(self, user_id: int, **fields) -> Optional[UserDB]:
        """
        Update the given columns on a user. None values are skipped.

        Returns:
            Updated user, or None if it does not exist
        """
        async with self.db.session() as session:
            try:
                result = await session.execute(
                    select(UserDB).where(UserDB.id == user_id)
                )
                user = result.scalar_one_or_none()
                if not user:
                    return None

                for name, value in fields.items():
                    if value is not None:
                        setattr(user, name, value)

                await session.flush()
                logger.info(f"Updated user {user_id}: {sorted(k for k, v in fields.items() if v is not None)}")
                return user

            except IntegrityError as e:
                logger.error(f"Constraint violation updating user {user_id}: {e}")
                raise DatabaseConstraintError("Email already registered") from e

    # ==================== DEPENDENCIES ====================

    async def count_dependencies(self, user_id: int) -> Dict[str, int]:
        """Rows whose owning foreign key references the user."""
        async with self.db.session() as session:
            assigned = await session.scalar(
                select(func.count(TaskDB.id)).where(TaskDB.assigned_to_user_id == user_id)
            )
            created = await session.scalar(
                select(func.count(TaskDB.id)).where(TaskDB.created_by_user_id == user_id)
            )
            comments = await session.scalar(
                select(func.count(CommentDB.id)).where(CommentDB.user_id == user_id)
            )
            activities = await session.scalar(
                select(func.count(ActivityLogDB.id)).where(ActivityLogDB.user_id == user_id)
            )

        return {
            "assigned_tasks": assigned or 0,
            "created_tasks": created or 0,
            "comments": comments or 0,
            "activities": activities or 0,
        }

    # ==================== DELETION ====================

    async def delete(self, user_id: int) -> bool:
        """
        Delete a user that has no dependent rows. Their direct messages go with them.

        Returns:
            True if deleted, False if not found

        Raises:
            DatabaseConstraintError: If rows still reference the user
        """
        try:
            async with self.db.transaction() as session:
                user = await session.get(UserDB, user_id)
                if not user:
                    return False

                await self._remove_messages(session, user_id)
                await self._remove_user(session, user_id)

        except IntegrityError as e:
            logger.error(f"Constraint violation deleting user {user_id}: {e}")
            raise DatabaseConstraintError(f"User {user_id} is still referenced") from e

        logger.info(f"Deleted user {user_id}")
        return True

    async def reassign_and_delete(self, user_id: int, replacement_id: int) -> Dict[str, int]:
        """
        Move every dependent row to the replacement user, drop the user's
        messages, then delete the user. All or nothing.

        Returns:
            Number of rows moved per dependency kind

        Raises:
            EntityNotFoundError: If either user does not exist
            DatabaseOperationError: If any step fails (nothing is committed)
        """
        try:
            async with self.db.transaction() as session:
                if not await session.get(UserDB, user_id):
                    raise EntityNotFoundError(f"User {user_id} not found")
                if not await session.get(UserDB, replacement_id):
                    raise EntityNotFoundError(f"Replacement user {replacement_id} not found")

                moved = {
                    "assigned_tasks": await self._reassign(
                        session, TaskDB, TaskDB.assigned_to_user_id, user_id, replacement_id
                    ),
                    "created_tasks": await self._reassign(
                        session, TaskDB, TaskDB.created_by_user_id, user_id, replacement_id
                    ),
                    "comments": await self._reassign(
                        session, CommentDB, CommentDB.user_id, user_id, replacement_id
                    ),
                    "activities": await self._reassign(
                        session, ActivityLogDB, ActivityLogDB.user_id, user_id, replacement_id
                    ),
                }

                await self._remove_messages(session, user_id)
                await self._remove_user(session, user_id)

        except EntityNotFoundError:
            raise

        except Exception as e:
            logger.error(
                f"CRITICAL: Reassign-and-delete failed for user {user_id} -> {replacement_id}, "
                f"rolled back: {e}",
                exc_info=True,
            )
            raise DatabaseOperationError(f"Failed to delete user {user_id}: {e}") from e

        logger.info(f"Deleted user {user_id}, reassigned to {replacement_id}: {moved}")
        return moved

    @staticmethod
    async def _reassign(session: AsyncSession, model, column, user_id: int, replacement_id: int) -> int:
        result = await session.execute(
            update(model).where(column == user_id).values({column.key: replacement_id})
        )
        return result.rowcount or 0

    @staticmethod
    async def _remove_messages(session: AsyncSession, user_id: int):
        await session.execute(
            delete(MessageDB).where(
                or_(
                    MessageDB.sender_user_id == user_id,
                    MessageDB.recipient_user_id == user_id,
                )
            )
        )

    @staticmethod
    async def _remove_user(session: AsyncSession, user_id: int):
        await session.execute(delete(UserDB).where(UserDB.id == user_id))

    # ==================== STATISTICS ====================

    async def count_by_role(self) -> Dict[str, int]:
        """User counts keyed by every role value (zero-filled)."""
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB.role, func.count(UserDB.id)).group_by(UserDB.role)
            )
            counts = {role.value: 0 for role in UserRoleEnum}
            for role, count in result.all():
                counts[role] = count
            return counts


# Singleton
_user_repository: Optional[UserRepository] = None


def get_user_repository() -> UserRepository:
    """Get the user repository singleton."""
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository()
    return _user_repository
