"""Task Schemas — request bodies and response shape for /api/v1/tasks.

Invariants:
    - TaskUpdate is partial: routes pass model_dump(exclude_unset=True) so
      "absent" and "explicitly null" stay distinguishable
"""

from pydantic import BaseModel


class TaskCreate(BaseModel):
    name: str | None = None
    description: str | None = None
    date: str | None = None
    project_id: str | None = None
    assigned_to_id: str | None = None
    priority: str | None = None
    status: str | None = None


class TaskUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    date: str | None = None
    project_id: str | None = None
    assigned_to_id: str | None = None
    priority: str | None = None
    status: str | None = None
    archived: bool | None = None


class TaskResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    date: str
    project_id: str
    assigned_to_id: str | None = None
    created_by_id: str | None = None
    status: str
    priority: str
    archived: bool = False
    completed_at: str | None = None
    created_at: str
    updated_at: str
