"""Activity Route — recent audit entries visible to the caller."""

from fastapi import APIRouter, Depends, Query

from taskhub.api.dependencies import get_current_user, get_data_service
from taskhub.core.constants import MAX_ACTIVITY_ITEMS
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.user import ActivityResponse
from taskhub.services.activity import list_recent_activity

router = APIRouter(prefix="/api/v1/activity", tags=["activity"])


@router.get("", response_model=list[ActivityResponse])
async def list_activity(
    limit: int = Query(MAX_ACTIVITY_ITEMS, ge=1, le=MAX_ACTIVITY_ITEMS),
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await list_recent_activity(data, user["id"], limit)
