"""
User directory routes.

Admin-only except the intern list (Admin / Mentor) and the mentor list
(any authenticated user).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..database.models import UserRoleEnum
from ..models.api_validation import CreateUserRequest, UpdateUserRequest
from ..security.dependencies import CurrentUser, get_current_user, require_roles
from ..services.user_directory import get_user_directory_service
from .serializers import user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

admin_only = require_roles(UserRoleEnum.ADMIN)


@router.get("")
async def get_all_users(user: CurrentUser = Depends(admin_only)):
    users = await get_user_directory_service().list_users()
    return [user_to_dict(u) for u in users]


@router.get("/interns")
async def get_interns(
    user: CurrentUser = Depends(require_roles(UserRoleEnum.ADMIN, UserRoleEnum.MENTOR)),
):
    interns = await get_user_directory_service().list_interns()
    return [user_to_dict(u) for u in interns]


@router.get("/mentors")
async def get_mentors(user: CurrentUser = Depends(get_current_user)):
    mentors = await get_user_directory_service().list_mentors()
    return [user_to_dict(u) for u in mentors]


@router.get("/{user_id}")
async def get_user_by_id(user_id: int, user: CurrentUser = Depends(admin_only)):
    found = await get_user_directory_service().get_user(user_id)
    return user_to_dict(found)


@router.get("/{user_id}/dependencies")
async def get_user_dependencies(user_id: int, user: CurrentUser = Depends(admin_only)):
    deps = await get_user_directory_service().get_dependencies(user_id)
    return {
        "assignedTasks": deps["assigned_tasks"],
        "createdTasks": deps["created_tasks"],
        "totalTasks": deps["total_tasks"],
        "comments": deps["comments"],
        "activities": deps["activities"],
        "totalDependencies": deps["total_dependencies"],
        "hasDependencies": deps["has_dependencies"],
    }


@router.post("")
async def create_user(data: CreateUserRequest, user: CurrentUser = Depends(admin_only)):
    created = await get_user_directory_service().create_user(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    logger.info(f"Admin {user.user_id} created user {created.id}")
    return {"message": "User created successfully", "user": user_to_dict(created)}


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UpdateUserRequest,
    user: CurrentUser = Depends(admin_only),
):
    updated = await get_user_directory_service().update_user(
        user_id,
        full_name=data.full_name,
        email=data.email,
        role=data.role,
    )
    return {"message": "User updated successfully", "user": user_to_dict(updated)}


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    reassign_to_user_id: Optional[int] = Query(None, alias="reassignToUserId"),
    user: CurrentUser = Depends(admin_only),
):
    """
    Delete a user. When they own tasks, comments or activity entries,
    `reassignToUserId` is required and everything moves to that user in
    one transaction.
    """
    message = await get_user_directory_service().delete_user(
        user.user_id, user_id, reassign_to_user_id
    )
    return {"message": message}
