"""
Dashboard aggregator.

Everything is recomputed on each call; nothing is cached.
"""

import logging
import math
from typing import Optional, Dict, Any

from ..database.repositories.tasks import get_task_repository, TaskRepository
from ..database.repositories.users import get_user_repository, UserRepository
from ..database.repositories.comments import get_comment_repository, CommentRepository
from ..database.repositories.activity import get_activity_repository, ActivityRepository
from ..database.models import TaskStatusEnum, UserRoleEnum
from ..monitoring import record_task_status_counts
from ..utils.datetime_utils import utc_now, start_of_utc_day

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 5


def health_score(completed: int, total: int) -> int:
    """Percentage of tasks completed, rounded half up. An empty board scores 100."""
    if total <= 0:
        return 100
    return int(math.floor(completed * 100 / total + 0.5))


class DashboardService:
    """Service for the staff dashboard rollup."""

    def __init__(self):
        self.tasks: TaskRepository = get_task_repository()
        self.users: UserRepository = get_user_repository()
        self.comments: CommentRepository = get_comment_repository()
        self.activity: ActivityRepository = get_activity_repository()

    async def get_stats(self) -> Dict[str, Any]:
        now = utc_now()

        status_counts = await self.tasks.count_by_status()
        role_counts = await self.users.count_by_role()
        comments_today = await self.comments.count_since(start_of_utc_day(now))
        overdue = await self.tasks.count_overdue(now)
        recent = await self.activity.get_recent(RECENT_ACTIVITY_LIMIT)

        record_task_status_counts(status_counts)

        total = sum(status_counts.values())
        completed = status_counts[TaskStatusEnum.COMPLETED.value]

        return {
            "total_tasks": total,
            "pending_tasks": status_counts[TaskStatusEnum.PENDING.value],
            "in_progress_tasks": status_counts[TaskStatusEnum.IN_PROGRESS.value],
            "submitted_tasks": status_counts[TaskStatusEnum.SUBMITTED.value],
            "completed_tasks": completed,
            "total_interns": role_counts[UserRoleEnum.INTERN.value],
            "active_mentors": role_counts[UserRoleEnum.MENTOR.value],
            "total_admins": role_counts[UserRoleEnum.ADMIN.value],
            "comments_today": comments_today,
            "overdue_tasks": overdue,
            "health_score": health_score(completed, total),
            "recent_activity": [
                {
                    "action": entry.action,
                    "user_name": entry.user.full_name if entry.user else "Unknown",
                    "timestamp": entry.timestamp,
                }
                for entry in recent
            ],
        }


# Singleton
_dashboard_service: Optional[DashboardService] = None


def get_dashboard_service() -> DashboardService:
    """Get the dashboard service singleton."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
