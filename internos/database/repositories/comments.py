"""Comment repository: per-task discussion threads."""

import logging
from typing import Optional, List
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError

from .base import BaseRepository
from ..models import CommentDB, TaskDB
from ..exceptions import DatabaseConstraintError, EntityNotFoundError
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class CommentRepository(BaseRepository):
    """Repository for comment operations."""

    async def add(self, task_id: int, user_id: int, content: str) -> CommentDB:
        """
        Add a comment to a task.

        Raises:
            EntityNotFoundError: If the task does not exist
            DatabaseConstraintError: If the author does not exist
        """
        async with self.db.session() as session:
            task_exists = await session.scalar(
                select(func.count(TaskDB.id)).where(TaskDB.id == task_id)
            )
            if not task_exists:
                raise EntityNotFoundError(f"Task {task_id} not found")

            try:
                comment = CommentDB(
                    task_id=task_id,
                    user_id=user_id,
                    content=content,
                    created_at=utc_now(),
                )
                session.add(comment)
                await session.flush()

                logger.info(f"User {user_id} commented on task {task_id}")
                return comment

            except IntegrityError as e:
                logger.error(f"Constraint violation adding comment: {e}")
                raise DatabaseConstraintError("Cannot add comment: constraint violation") from e

    async def get_by_task(self, task_id: int) -> List[CommentDB]:
        """Comments on a task, oldest first, with authors loaded."""
        async with self.db.session() as session:
            result = await session.execute(
                select(CommentDB)
                .options(selectinload(CommentDB.user))
                .where(CommentDB.task_id == task_id)
                .order_by(CommentDB.created_at.asc(), CommentDB.id.asc())
            )
            return list(result.scalars().all())

    async def count_since(self, since: datetime) -> int:
        """Number of comments created at or after a point in time."""
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(CommentDB.id)).where(CommentDB.created_at >= since)
            )
            return result.scalar() or 0


# Singleton
_comment_repository: Optional[CommentRepository] = None


def get_comment_repository() -> CommentRepository:
    """Get the comment repository singleton."""
    global _comment_repository
    if _comment_repository is None:
        _comment_repository = CommentRepository()
    return _comment_repository
