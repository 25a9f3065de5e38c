"""
Task registry routes.

Staff (Admin / Mentor) create, review, re-status and delete tasks; the
assigned intern submits them, optionally with a file.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile

from ..database.models import UserRoleEnum
from ..models.api_validation import CreateTaskRequest, ReviewTaskRequest
from ..security.dependencies import CurrentUser, get_current_user, require_roles
from ..services.task_lifecycle import get_task_lifecycle_service
from .serializers import (
    task_to_dict,
    task_summary_to_dict,
    stored_file_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

staff_only = require_roles(UserRoleEnum.ADMIN, UserRoleEnum.MENTOR)


# ============================================================================
# Queries
# ============================================================================

@router.get("")
async def list_tasks(user: CurrentUser = Depends(get_current_user)):
    """All tasks with comment count and latest comment."""
    summaries = await get_task_lifecycle_service().list_tasks()
    return [task_summary_to_dict(s) for s in summaries]


@router.get("/my-tasks")
async def my_tasks(user: CurrentUser = Depends(get_current_user)):
    """Tasks assigned to the caller, newest first."""
    tasks = await get_task_lifecycle_service().list_my_tasks(user.user_id)
    return [task_to_dict(t) for t in tasks]


@router.get("/{task_id}")
async def get_task(task_id: int, user: CurrentUser = Depends(get_current_user)):
    task = await get_task_lifecycle_service().get_task(task_id)
    return task_to_dict(task)


@router.get("/{task_id}/submissions")
async def list_submissions(
    task_id: int,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
):
    """Uploaded submission files, newest first."""
    files = await get_task_lifecycle_service().list_submissions(user, task_id)
    return [stored_file_to_dict(f, str(request.base_url)) for f in files]


# ============================================================================
# Mutations
# ============================================================================

@router.post("")
async def create_task(data: CreateTaskRequest, user: CurrentUser = Depends(staff_only)):
    task = await get_task_lifecycle_service().create_task(
        creator_id=user.user_id,
        title=data.title,
        description=data.description,
        assigned_to_user_id=data.assigned_to_user_id,
        due_date=data.due_date,
    )
    return {"message": "Task successfully assigned!", "taskId": task.id}


@router.patch("/{task_id}/status")
async def update_status(
    task_id: int,
    status_value: Any = Body(...),
    user: CurrentUser = Depends(staff_only),
):
    """
    Set any status directly. The body is a bare integer code or status name,
    or {"status": ...}.
    """
    if isinstance(status_value, dict):
        status_value = status_value.get("status")

    task = await get_task_lifecycle_service().set_status(user.user_id, task_id, status_value)
    return {"message": "Status updated!", "newStatus": task.status}


async def _submit(task_id: int, user: CurrentUser):
    task = await get_task_lifecycle_service().submit(user, task_id)
    return {"message": "Task submitted for review!", "newStatus": task.status}


@router.patch("/{task_id}/submit")
async def submit_task(task_id: int, user: CurrentUser = Depends(get_current_user)):
    return await _submit(task_id, user)


@router.patch("/{task_id}/complete")
async def complete_task(task_id: int, user: CurrentUser = Depends(get_current_user)):
    """Older clients call this; it submits for review like /submit."""
    return await _submit(task_id, user)


@router.post("/{task_id}/submission")
async def upload_submission(
    task_id: int,
    request: Request,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
):
    """Upload a submission file (max 10MB) and send the task for review."""
    result = await get_task_lifecycle_service().upload_submission(user, task_id, file)
    stored = stored_file_to_dict(result["file"], str(request.base_url))
    return {
        "message": "Submission uploaded successfully and sent for review.",
        "fileName": stored["fileName"],
        "fileUrl": stored["fileUrl"],
        "newStatus": result["task"].status,
    }


@router.patch("/{task_id}/review")
async def review_task(
    task_id: int,
    data: ReviewTaskRequest,
    user: CurrentUser = Depends(staff_only),
):
    task = await get_task_lifecycle_service().review(
        user.user_id, task_id, data.approved, data.feedback
    )
    return {
        "message": "Task approved." if data.approved else "Task sent back for revision.",
        "newStatus": task.status,
        "completedAt": task_to_dict(task)["completedAt"],
    }


async def _delete(task_id: int, user: CurrentUser):
    await get_task_lifecycle_service().delete_task(user.user_id, task_id)
    return {"message": "Task deleted successfully."}


@router.delete("/{task_id}")
async def delete_task(task_id: int, user: CurrentUser = Depends(staff_only)):
    return await _delete(task_id, user)


@router.post("/{task_id}/delete")
async def delete_task_fallback(task_id: int, user: CurrentUser = Depends(staff_only)):
    """For clients that cannot send DELETE."""
    return await _delete(task_id, user)
