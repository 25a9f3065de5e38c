"""
Task lifecycle service.

States:
    Pending -> InProgress -> Submitted -> Completed
                  ^             |
                  +-- rejected -+

Handles business logic for:
- Creating tasks (Admin / Mentor)
- Free-form status changes by staff
- Intern submission, with or without an uploaded file
- Review (approve / send back for revision)
- Deletion, including the task's stored submissions

Every state change is written together with its activity entry.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from ..database.repositories.tasks import get_task_repository, TaskRepository
from ..database.exceptions import DatabaseConstraintError, EntityNotFoundError
from ..database.models import TaskDB, TaskStatusEnum, UserRoleEnum
from ..monitoring import record_task_transition
from ..security.tokens import TokenClaims
from ..utils.datetime_utils import utc_now, to_naive_utc
from .exceptions import BadRequestError, ForbiddenError, NotFoundError
from .storage import get_file_storage, FileStorage, StoredFile

logger = logging.getLogger(__name__)

STAFF_ROLES = {UserRoleEnum.ADMIN.value, UserRoleEnum.MENTOR.value}


def review_action(approved: bool, feedback: Optional[str] = None) -> str:
    """Activity text for a review decision."""
    action = "Task Approved" if approved else "Task Rejected (Needs Revision)"
    if feedback and feedback.strip():
        action = f"{action}: {feedback}"
    return action


class TaskLifecycleService:
    """Service for task state changes."""

    def __init__(self):
        self.tasks: TaskRepository = get_task_repository()

    @property
    def storage(self) -> FileStorage:
        return get_file_storage()

    async def get_task(self, task_id: int) -> TaskDB:
        task = await self.tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found.")
        return task

    async def list_tasks(self) -> List[Dict[str, Any]]:
        return await self.tasks.get_all_with_comment_summary()

    async def list_my_tasks(self, user_id: int) -> List[TaskDB]:
        return await self.tasks.get_by_assignee(user_id)

    # ==================== CREATE ====================

    async def create_task(
        self,
        creator_id: int,
        title: str,
        description: str,
        assigned_to_user_id: int,
        due_date: Optional[datetime] = None,
    ) -> TaskDB:
        """
        Create a task in Pending.

        Raises:
            BadRequestError: If the assignee (or creator) does not exist
        """
        try:
            task = await self.tasks.create(
                title=title,
                description=description,
                assigned_to_user_id=assigned_to_user_id,
                created_by_user_id=creator_id,
                due_date=to_naive_utc(due_date),
            )
        except DatabaseConstraintError as e:
            raise BadRequestError("Assigned user does not exist.") from e

        record_task_transition("create", TaskStatusEnum.PENDING.value)
        return task

    # ==================== TRANSITIONS ====================

    async def _transition(
        self,
        task_id: int,
        new_status: TaskStatusEnum,
        actor_id: int,
        action: str,
        kind: str,
        **fields: Any,
    ) -> TaskDB:
        try:
            task = await self.tasks.change_status(task_id, new_status, actor_id, action, **fields)
        except EntityNotFoundError as e:
            raise NotFoundError("Task not found.") from e

        record_task_transition(kind, new_status.value)
        return task

    async def set_status(self, actor_id: int, task_id: int, raw_status: Any) -> TaskDB:
        """
        Staff override: any of the four statuses, no transition checks.

        Raises:
            BadRequestError: If the value is not a known status
            NotFoundError: If the task does not exist
        """
        new_status = TaskStatusEnum.parse(raw_status)
        if new_status is None:
            raise BadRequestError(f"Invalid status value: {raw_status!r}")

        task = await self.get_task(task_id)
        action = f"Status Changed from {task.status} to {new_status.value}"
        return await self._transition(task_id, new_status, actor_id, action, "status")

    def _require_assigned_intern(self, user: TokenClaims, task: TaskDB, message: str):
        if user.role != UserRoleEnum.INTERN.value or task.assigned_to_user_id != user.user_id:
            raise ForbiddenError(message)

    async def submit(self, user: TokenClaims, task_id: int) -> TaskDB:
        """
        Assigned intern sends the task for review.

        Raises:
            ForbiddenError: If the caller is not the assigned intern
            BadRequestError: If the task is already completed
        """
        task = await self.get_task(task_id)
        self._require_assigned_intern(
            user, task, "Only the assigned intern can submit this task for review."
        )

        if task.status == TaskStatusEnum.COMPLETED.value:
            raise BadRequestError("Completed tasks cannot be submitted again.")

        return await self._transition(
            task_id,
            TaskStatusEnum.SUBMITTED,
            user.user_id,
            "Task Submitted for Review",
            "submit",
            completed_at=None,
        )

    async def upload_submission(self, user: TokenClaims, task_id: int, upload) -> Dict[str, Any]:
        """
        Store a submission file and submit the task.

        Returns:
            {"task", "file"} with the updated task and the StoredFile
        """
        task = await self.get_task(task_id)
        self._require_assigned_intern(
            user, task, "Only the assigned intern can upload submissions."
        )

        if task.status == TaskStatusEnum.COMPLETED.value:
            raise BadRequestError("Completed tasks cannot be submitted again.")

        stored = await self.storage.save_submission(task_id, user.user_id, upload)

        updated = await self._transition(
            task_id,
            TaskStatusEnum.SUBMITTED,
            user.user_id,
            "Task Submission Uploaded",
            "upload",
            completed_at=None,
        )
        return {"task": updated, "file": stored}

    async def list_submissions(self, user: TokenClaims, task_id: int) -> List[StoredFile]:
        """Staff, or the assignee, may list a task's submissions."""
        task = await self.get_task(task_id)
        if user.role not in STAFF_ROLES and task.assigned_to_user_id != user.user_id:
            raise ForbiddenError("You do not have access to this task's submissions.")

        return await self.storage.list_submissions(task_id)

    async def review(
        self,
        reviewer_id: int,
        task_id: int,
        approved: bool,
        feedback: Optional[str] = None,
    ) -> TaskDB:
        """
        Approve (-> Completed) or send back (-> InProgress) a submitted task.

        Raises:
            BadRequestError: If the task is not Submitted
        """
        task = await self.get_task(task_id)
        if task.status != TaskStatusEnum.SUBMITTED.value:
            raise BadRequestError("Only submitted tasks can be reviewed.")

        if approved:
            return await self._transition(
                task_id,
                TaskStatusEnum.COMPLETED,
                reviewer_id,
                review_action(True, feedback),
                "approve",
                completed_at=utc_now(),
            )

        return await self._transition(
            task_id,
            TaskStatusEnum.IN_PROGRESS,
            reviewer_id,
            review_action(False, feedback),
            "reject",
            completed_at=None,
        )

    # ==================== DELETE ====================

    async def delete_task(self, actor_id: int, task_id: int) -> str:
        """
        Delete a task, its comments and its stored submissions.

        Returns:
            The deleted task's title
        """
        try:
            title = await self.tasks.delete(task_id, actor_id)
        except EntityNotFoundError as e:
            raise NotFoundError("Task not found.") from e

        await self.storage.remove_submissions(task_id)
        logger.info(f"User {actor_id} deleted task {task_id}")
        return title


# Singleton
_task_lifecycle_service: Optional[TaskLifecycleService] = None


def get_task_lifecycle_service() -> TaskLifecycleService:
    """Get the task lifecycle service singleton."""
    global _task_lifecycle_service
    if _task_lifecycle_service is None:
        _task_lifecycle_service = TaskLifecycleService()
    return _task_lifecycle_service
