"""
Task repository.

Handles:
- Task CRUD operations
- Status changes, each committed together with its activity entry
- Comment summaries for the task list
- Counts for the dashboard rollup
"""

import logging
from typing import Optional, List, Dict, Any
from datetime import datetime

from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError

from .base import BaseRepository
from .activity import ActivityRepository
from ..models import TaskDB, CommentDB, ActivityLogDB, TaskStatusEnum
from ..exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
)
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class TaskRepository(BaseRepository):
    """Repository for task operations."""

    # ==================== TASK CRUD ====================

    async def create(
        self,
        title: str,
        description: str,
        assigned_to_user_id: int,
        created_by_user_id: int,
        due_date: Optional[datetime] = None,
    ) -> TaskDB:
        """Create a task in Pending and log "Task Created" in the same transaction."""
        async with self.db.session() as session:
            try:
                task = TaskDB(
                    title=title,
                    description=description,
                    status=TaskStatusEnum.PENDING.value,
                    assigned_to_user_id=assigned_to_user_id,
                    created_by_user_id=created_by_user_id,
                    created_at=utc_now(),
                    due_date=due_date,
                )
                session.add(task)
                await session.flush()

                ActivityRepository.add_entry(session, "Task Created", created_by_user_id, task.id)
                await session.flush()

                logger.info(f"Created task {task.id} for user {assigned_to_user_id}")
                return task

            except IntegrityError as e:
                logger.error(f"Constraint violation creating task: {e}")
                raise DatabaseConstraintError(
                    "Cannot create task: assigned or creating user does not exist"
                ) from e

            except Exception as e:
                logger.error(f"CRITICAL: Task creation failed: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create task: {e}") from e

    async def get_by_id(self, task_id: int) -> Optional[TaskDB]:
        """Get task by primary key."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB).where(TaskDB.id == task_id)
            )
            return result.scalar_one_or_none()

    async def change_status(
        self,
        task_id: int,
        new_status: TaskStatusEnum,
        actor_id: int,
        action: str,
        **fields: Any,
    ) -> TaskDB:
        """
        Set a task's status (plus any extra column values, e.g. completed_at)
        and append one activity entry, atomically.

        No transition validation happens here; callers own the state machine.

        Raises:
            EntityNotFoundError: If the task does not exist
        """
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB).where(TaskDB.id == task_id)
            )
            task = result.scalar_one_or_none()

            if not task:
                raise EntityNotFoundError(f"Task {task_id} not found")

            old_status = task.status
            task.status = new_status.value
            for name, value in fields.items():
                setattr(task, name, value)

            ActivityRepository.add_entry(session, action, actor_id, task.id)
            await session.flush()

            logger.info(f"Task {task_id} status changed: {old_status} -> {new_status.value}")
            return task

    async def delete(self, task_id: int, actor_id: int) -> str:
        """
        Delete a task and its comments.

        Activity entries referencing the task are kept with their task id
        nulled, and a "Task Deleted" entry is appended.

        Returns:
            The deleted task's title

        Raises:
            EntityNotFoundError: If the task does not exist
        """
        async with self.db.session() as session:
            try:
                result = await session.execute(
                    select(TaskDB).where(TaskDB.id == task_id)
                )
                task = result.scalar_one_or_none()

                if not task:
                    raise EntityNotFoundError(f"Task {task_id} not found for deletion")

                title = task.title

                await session.execute(
                    update(ActivityLogDB)
                    .where(ActivityLogDB.task_id == task_id)
                    .values(task_id=None)
                )
                await session.execute(
                    delete(CommentDB).where(CommentDB.task_id == task_id)
                )
                await session.execute(
                    delete(TaskDB).where(TaskDB.id == task_id)
                )

                ActivityRepository.add_entry(session, f"Task Deleted: {title}", actor_id, None)
                await session.flush()

                logger.info(f"Deleted task {task_id} ({title})")
                return title

            except EntityNotFoundError:
                raise

            except Exception as e:
                logger.error(f"CRITICAL: Task deletion failed for {task_id}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to delete task {task_id}: {e}") from e

    # ==================== QUERY METHODS ====================

    async def get_all_with_comment_summary(self) -> List[Dict[str, Any]]:
        """
        All tasks with their comment count and most recent comment text.

        Returns:
            List of {"task", "comment_count", "latest_comment"} dicts
        """
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB)
                .options(selectinload(TaskDB.comments))
                .order_by(TaskDB.id)
            )
            tasks = list(result.scalars().all())

        summaries = []
        for task in tasks:
            latest = max(task.comments, key=lambda c: (c.created_at, c.id), default=None)
            summaries.append({
                "task": task,
                "comment_count": len(task.comments),
                "latest_comment": latest.content if latest else None,
            })
        return summaries

    async def get_by_assignee(self, user_id: int) -> List[TaskDB]:
        """Tasks assigned to a user, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB)
                .where(TaskDB.assigned_to_user_id == user_id)
                .order_by(TaskDB.created_at.desc(), TaskDB.id.desc())
            )
            return list(result.scalars().all())

    # ==================== STATISTICS ====================

    async def count_by_status(self) -> Dict[str, int]:
        """Task counts keyed by every status value (zero-filled)."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB.status, func.count(TaskDB.id))
                .group_by(TaskDB.status)
            )
            counts = {status.value: 0 for status in TaskStatusEnum}
            for status, count in result.all():
                counts[status] = count
            return counts

    async def count_overdue(self, now: Optional[datetime] = None) -> int:
        """Tasks whose due date has passed and that are neither completed nor submitted."""
        now = now or utc_now()
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(TaskDB.id)).where(
                    and_(
                        TaskDB.due_date.is_not(None),
                        TaskDB.due_date < now,
                        TaskDB.status.not_in([
                            TaskStatusEnum.COMPLETED.value,
                            TaskStatusEnum.SUBMITTED.value,
                        ]),
                    )
                )
            )
            return result.scalar() or 0


# Singleton
_task_repository: Optional[TaskRepository] = None


def get_task_repository() -> TaskRepository:
    """Get the task repository singleton."""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
