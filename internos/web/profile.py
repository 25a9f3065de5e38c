"""
Profile routes for the signed-in user: details, password and photo.
"""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile

from ..database.repositories.users import get_user_repository
from ..database.exceptions import DatabaseConstraintError
from ..models.api_validation import UpdateProfileRequest, ChangePasswordRequest
from ..security.dependencies import CurrentUser, get_current_user
from ..security.passwords import hash_password, verify_password
from ..services.exceptions import BadRequestError, NotFoundError
from ..services.storage import get_file_storage
from .serializers import photo_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])


async def _load_user(user_id: int):
    found = await get_user_repository().get_by_id(user_id)
    if not found:
        raise NotFoundError("User not found.")
    return found


@router.get("/me")
async def get_my_profile(request: Request, user: CurrentUser = Depends(get_current_user)):
    me = await _load_user(user.user_id)
    photo = await get_file_storage().latest_profile_photo(me.id)
    return {
        "id": me.id,
        "fullName": me.full_name,
        "email": me.email,
        "role": me.role,
        "profilePhotoUrl": photo_url(photo, str(request.base_url)),
    }


@router.put("/me")
async def update_my_profile(data: UpdateProfileRequest, user: CurrentUser = Depends(get_current_user)):
    users = get_user_repository()
    await _load_user(user.user_id)

    email = data.email.strip()
    if await users.email_in_use(email, exclude_id=user.user_id):
        raise BadRequestError("Email is already in use.")

    try:
        updated = await users.update(user.user_id, full_name=data.full_name, email=email)
    except DatabaseConstraintError as e:
        raise BadRequestError("Email is already in use.") from e

    if not updated:
        raise NotFoundError("User not found.")

    return {
        "message": "Profile updated successfully.",
        "fullName": updated.full_name,
        "email": updated.email,
    }


@router.post("/change-password")
async def change_password(data: ChangePasswordRequest, user: CurrentUser = Depends(get_current_user)):
    me = await _load_user(user.user_id)

    if not verify_password(data.old_password, me.password_hash):
        raise BadRequestError("Old password is incorrect.")
    if data.old_password == data.new_password:
        raise BadRequestError("New password must be different from old password.")

    await get_user_repository().update(me.id, password_hash=hash_password(data.new_password))
    logger.info(f"User {me.id} changed password")
    return {"message": "Password changed successfully."}


@router.post("/photo")
async def upload_profile_photo(
    request: Request,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
):
    """Replace the profile photo (max 5MB; jpg, jpeg, png or webp)."""
    me = await _load_user(user.user_id)
    stored = await get_file_storage().save_profile_photo(me.id, file)
    return {
        "message": "Profile photo uploaded successfully.",
        "profilePhotoUrl": photo_url(stored, str(request.base_url)),
    }
