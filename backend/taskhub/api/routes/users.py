"""User Routes — invitation redemption, profile and API token rotation.

Invariants:
    - POST /invitations/accept is the only unauthenticated write
    - The bearer token appears in a response body exactly once per issue
    - /users/me routes are declared before /users/{user_id}
"""

import logging

from fastapi import APIRouter, Depends, status

from taskhub.api.dependencies import get_current_user, get_data_service
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.user import (
    InvitationAccept, TokenResponse, UserResponse, UserUpdate,
)
from taskhub.services import user_accounts

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["users"])


@router.post(
    "/invitations/accept", response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def accept_invitation(
    body: InvitationAccept, data: DataService = Depends(get_data_service),
):
    """Redeem an invite token: creates the user, personal project and token."""
    user, token = await user_accounts.accept_invitation(
        data, body.token, body.username, body.name,
    )
    return {"user": user_accounts.public_user(user), "api_token": token}


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await user_accounts.list_users(data)


@router.get("/users/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    return user_accounts.public_user(user)


@router.put("/users/me", response_model=UserResponse)
async def update_me(
    body: UserUpdate,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    updated = await user_accounts.update_profile(
        data, user["id"], body.model_dump(exclude_unset=True),
    )
    return user_accounts.public_user(updated)


@router.post("/users/me/token", response_model=TokenResponse)
async def rotate_token(
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    token = await user_accounts.issue_api_token(data, user["id"])
    logger.info("API token rotated", extra={"user_id": user["id"]})
    refreshed = await user_accounts.get_user(data, user["id"])
    return {"user": user_accounts.public_user(refreshed), "api_token": token}


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return user_accounts.public_user(await user_accounts.get_user(data, user_id))
