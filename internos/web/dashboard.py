"""Dashboard route."""

from fastapi import APIRouter, Depends

from ..database.models import UserRoleEnum
from ..security.dependencies import CurrentUser, require_roles
from ..services.dashboard import get_dashboard_service
from ..utils.datetime_utils import isoformat_utc

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_stats(
    user: CurrentUser = Depends(require_roles(UserRoleEnum.ADMIN)),
):
    stats = await get_dashboard_service().get_stats()
    return {
        "totalTasks": stats["total_tasks"],
        "pendingTasks": stats["pending_tasks"],
        "inProgressTasks": stats["in_progress_tasks"],
        "submittedTasks": stats["submitted_tasks"],
        "completedTasks": stats["completed_tasks"],
        "totalInterns": stats["total_interns"],
        "activeMentors": stats["active_mentors"],
        "totalAdmins": stats["total_admins"],
        "commentsToday": stats["comments_today"],
        "overdueTasks": stats["overdue_tasks"],
        "healthScore": stats["health_score"],
        "recentActivity": [
            {
                "action": entry["action"],
                "userName": entry["user_name"],
                "timestamp": isoformat_utc(entry["timestamp"]),
            }
            for entry in stats["recent_activity"]
        ],
    }
