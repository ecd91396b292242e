"""Discord Schemas — bot-channel bodies and link-code payloads.

Invariants:
    - Bot responses wrap their payload in {"data": ...} (the gateway bot's contract)
"""

from typing import Any

from pydantic import BaseModel


class BotTaskCreate(BaseModel):
    name: str | None = None
    date: str | None = None
    priority: str | None = None


class LinkRequest(BaseModel):
    code: str | None = None


class AssistantQuery(BaseModel):
    query: str | None = None


class BotEnvelope(BaseModel):
    data: Any = None


class LinkCodeResponse(BaseModel):
    code: str
    expires_at: str
    expires_at_ms: int


class LinkStatusResponse(BaseModel):
    status: str
    discord_handle: str | None = None
    discord_user_id: str | None = None


class SummaryResponse(BaseModel):
    totalTasks: int
    pendingTasks: int
    completedTasks: int
    overdueTasks: int
    totalProjects: int
