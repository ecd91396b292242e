"""Admin Routes — invitations and user management for is_admin users.

Invariants:
    - Every route depends on require_admin (403 for everyone else)
    - Invite tokens are returned only from send/resend, stored hashed
    - An admin can never delete their own account
"""

from fastapi import APIRouter, Depends, status

from taskhub.api.dependencies import get_data_service, require_admin
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.admin import (
    AdminUserResponse,
    InvitationCreate,
    InvitationIssued,
    InvitationResponse,
)
from taskhub.schemas.user import UserResponse
from taskhub.services import invitations, user_accounts

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


def _issued(invitation: dict, token: str) -> dict:
    public = {k: v for k, v in invitation.items() if k != "invite_token_hash"}
    return {"invitation": public, "invite_token": token}


@router.get("/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    admin: dict = Depends(require_admin),
    data: DataService = Depends(get_data_service),
):
    return await invitations.list_invitations(data)


@router.post(
    "/invitations", response_model=InvitationIssued,
    status_code=status.HTTP_201_CREATED,
)
async def send_invitation(
    body: InvitationCreate,
    admin: dict = Depends(require_admin),
    data: DataService = Depends(get_data_service),
):
    invitation, token = await invitations.send_invitation(data, admin["id"], body.email)
    return _issued(invitation, token)


@router.post("/invitations/{email}/resend", response_model=InvitationIssued)
async def resend_invitation(
    email: str,
    admin: dict = Depends(require_admin),
    data: DataService = Depends(get_data_service),
):
    invitation, token = await invitations.resend_invitation(data, admin["id"], email)
    return _issued(invitation, token)


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    admin: dict = Depends(require_admin),
    data: DataService = Depends(get_data_service),
):
    return await invitations.list_users_with_task_counts(data)


@router.delete("/users/{user_id}", response_model=UserResponse)
async def delete_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    data: DataService = Depends(get_data_service),
):
    """Unassigns the user's tasks, drops owned projects and memberships."""
    return await user_accounts.delete_user_account(data, admin["id"], user_id)
