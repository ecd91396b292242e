"""Admin Schemas — invitation management and user listing."""

from pydantic import BaseModel


class InvitationCreate(BaseModel):
    email: str | None = None


class InvitationResponse(BaseModel):
    email: str
    status: str
    invited_by_user_id: str | None = None
    invited_at: str | None = None
    sent_at: str | None = None
    joined_at: str | None = None
    joined_user_id: str | None = None
    user_name: str | None = None
    username: str | None = None


class InvitationIssued(BaseModel):
    """Returned on send/resend: the invite token is only visible here."""
    invitation: InvitationResponse
    invite_token: str


class AdminUserResponse(BaseModel):
    id: str
    username: str
    name: str
    email: str | None = None
    initials: str | None = None
    color: str | None = None
    is_admin: bool = False
    discord_handle: str | None = None
    task_count: int = 0
    created_at: str
    updated_at: str
