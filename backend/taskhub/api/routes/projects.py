"""Project Routes — CRUD and membership under /api/v1/projects.

Invariants:
    - Every route resolves the caller first (Bearer or HMAC channel)
    - Ownership and membership are decided in project_operations, never here
"""

from fastapi import APIRouter, Depends, status

from taskhub.api.dependencies import get_current_user, get_data_service
from taskhub.core.repository_protocols import DataService
from taskhub.schemas.project import (
    MemberAdd, ProjectCreate, ProjectResponse, ProjectUpdate,
)
from taskhub.services import project_operations

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    """Projects the caller owns or belongs to."""
    return await project_operations.list_projects(data, user["id"])


@router.post(
    "", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await project_operations.create_project(
        data, user["id"], body.model_dump(),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await project_operations.get_project(data, user["id"], project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await project_operations.update_project(
        data, user["id"], project_id, body.model_dump(exclude_unset=True),
    )


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    """Owner only; tasks and memberships go with the project."""
    await project_operations.delete_project(data, user["id"], project_id)
    return {"success": True}


@router.post("/{project_id}/members", response_model=ProjectResponse)
async def add_member(
    project_id: str,
    body: MemberAdd,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    return await project_operations.add_project_member(
        data, user["id"], project_id, body.user_id,
    )


@router.delete("/{project_id}/members/{member_id}")
async def remove_member(
    project_id: str,
    member_id: str,
    user: dict = Depends(get_current_user),
    data: DataService = Depends(get_data_service),
):
    """Owner removes anyone but themselves; a member may remove only themselves."""
    await project_operations.remove_project_member(
        data, user["id"], project_id, member_id,
    )
    return {"success": True}
