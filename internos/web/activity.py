"""Activity log route."""

from fastapi import APIRouter, Depends

from ..database.repositories.activity import get_activity_repository
from ..security.dependencies import CurrentUser, get_current_user
from .serializers import activity_to_dict

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("")
async def get_activity_history(user: CurrentUser = Depends(get_current_user)):
    """Full audit trail, newest first."""
    entries = await get_activity_repository().get_logs()
    return [activity_to_dict(e) for e in entries]
