"""Discord Link Codes — web-side generation and polling of LINK-XXXXX codes.

Invariants:
    - Generating a code unlinks the caller's current Discord account first
    - A code's status is only visible to the user who generated it
"""

from fastapi import APIRouter, Depends, status

from taskhub.api.dependencies import get_current_user, get_data_service
from taskhub.config import Settings, get_settings
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.discord import LinkCodeResponse, LinkStatusResponse
from taskhub.services import discord_account

router = APIRouter(prefix="/api/v1/discord", tags=["discord"])


@router.post(
    "/link-codes", response_model=LinkCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_link_code(
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
    settings: Settings = Depends(get_settings),
):
    return await discord_account.create_link_code(
        data, user["id"], settings.link_code_ttl_seconds,
    )


@router.get("/link-codes/{code}", response_model=LinkStatusResponse)
async def get_link_code_status(
    code: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await discord_account.link_code_status(data, user["id"], code.upper())
