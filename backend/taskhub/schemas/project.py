"""Project Schemas — request bodies and response shape for /api/v1/projects."""

from pydantic import AliasChoices, BaseModel, Field


class ProjectCreate(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    members: list[str] | None = None


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None


class MemberAdd(BaseModel):
    """Accepts user_id or the web client's userId."""
    user_id: str | None = Field(
        None, validation_alias=AliasChoices("user_id", "userId"),
    )


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    color: str
    owner_id: str
    is_personal: bool = False
    members: list[str] = []
    created_at: str
    updated_at: str
