"""Comment routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..database.exceptions import EntityNotFoundError
from ..database.repositories.comments import get_comment_repository
from ..security.dependencies import CurrentUser, get_current_user
from ..services.exceptions import BadRequestError, NotFoundError
from .serializers import comment_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("/task/{task_id}")
async def get_task_comments(task_id: int, user: CurrentUser = Depends(get_current_user)):
    """Comments on a task, oldest first."""
    comments = await get_comment_repository().get_by_task(task_id)
    return [comment_to_dict(c) for c in comments]


@router.post("")
async def post_comment(
    task_id: int = Query(0, alias="taskId"),
    content: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
):
    """Any authenticated user may comment on any task."""
    if task_id <= 0:
        raise BadRequestError("Invalid taskId.")
    if not content or not content.strip():
        raise BadRequestError("Comment content is required.")

    try:
        await get_comment_repository().add(task_id, user.user_id, content.strip())
    except EntityNotFoundError as e:
        raise NotFoundError("Task not found.") from e

    return {"message": "Comment added successfully!"}
