"""User Schemas — registration, profile and token payloads."""

from pydantic import BaseModel


class InvitationAccept(BaseModel):
    token: str
    username: str
    name: str


class UserUpdate(BaseModel):
    name: str | None = None
    initials: str | None = None
    username: str | None = None
    color: str | None = None


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    email: str | None = None
    initials: str | None = None
    color: str | None = None
    is_admin: bool = False
    discord_user_id: str | None = None
    discord_handle: str | None = None
    discord_verified: bool = False
    created_at: str
    updated_at: str


class TokenResponse(BaseModel):
    """Bearer token, shown exactly once."""
    user: UserResponse
    api_token: str


class ActivityResponse(BaseModel):
    id: str
    user_id: str | None = None
    task_id: str | None = None
    project_id: str | None = None
    action: str
    details: str | None = None
    timestamp: str
