"""Task Routes — CRUD under /api/v1/tasks.

Invariants:
    - PUT forwards only the fields the client actually sent
    - Any member or owner of the task's project may read, update or delete it
"""

from fastapi import APIRouter, Depends, Query, status

from taskhub.api.dependencies import get_current_user, get_data_service
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from taskhub.services import task_operations

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    project_id: str | None = Query(None),
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await task_operations.list_tasks(data, user["id"], project_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await task_operations.create_task(data, user["id"], body.model_dump())


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await task_operations.get_task(data, user["id"], task_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await task_operations.update_task(
        data, user["id"], task_id, body.model_dump(exclude_unset=True),
    )


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    await task_operations.delete_task(data, user["id"], task_id)
    return {"success": True}
