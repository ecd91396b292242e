"""Project Operations — project CRUD and membership management.

Invariants:
    - Only the owner updates or deletes a project, or adds/removes other members
    - A non-owner member may remove themselves; the owner can never leave
    - Personal projects have no membership changes
    - owner_id never changes after creation
    - Duplicate project names are rejected among the caller's own projects
      (case-insensitive, stripped)
    - Removing a member unassigns their tasks in that project

Design Decisions:
    - Reads go through is_project_member too: non-members get 403, not a leak
      of the project's existence details
    - Initial member ids on create are best effort: unknown ids are logged and skipped
"""

import logging
import secrets

from taskhub.core.constants import (
    PREFIX_PROJECT,
    PROJECT_COLORS,
    PROJECT_DESCRIPTION_MAX,
    PROJECT_NAME_MAX,
    PROJECT_NAME_MIN,
)
from taskhub.core.domain_types import ActivityAction
from taskhub.core.errors import (
    ConflictError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError,
)
from taskhub.core.repository_protocols import DataService
from taskhub.core.validators import (
    generate_id,
    normalize_optional_id,
    sanitize_string,
    utc_now,
    validate_hex_color,
    validate_string,
)
from taskhub.services.activity import record_activity
from taskhub.services.authorization import is_project_member, is_project_owner

logger = logging.getLogger(__name__)

_NAME_MESSAGE = f"Project name must be {PROJECT_NAME_MIN}-{PROJECT_NAME_MAX} characters"
_DESCRIPTION_MESSAGE = (
    f"Description must be less than {PROJECT_DESCRIPTION_MAX} characters"
)
_COLOR_MESSAGE = "Invalid color. Use 6-digit hex like #f06a6a"


def pick_random_project_color() -> str:
    return secrets.choice(PROJECT_COLORS)


def _validate_project_fields(fields: dict) -> None:
    if "name" in fields and not validate_string(
        fields["name"], PROJECT_NAME_MIN, PROJECT_NAME_MAX,
    ):
        raise ValidationError(_NAME_MESSAGE, field="name")
    description = fields.get("description")
    if description is not None and not validate_string(
        description, 0, PROJECT_DESCRIPTION_MAX,
    ):
        raise ValidationError(_DESCRIPTION_MESSAGE, field="description")
    if "color" in fields and not validate_hex_color(fields["color"]):
        raise ValidationError(_COLOR_MESSAGE, field="color")


async def _ensure_unique_name(
    data: DataService, user_id: str, name: str, exclude_id: str | None = None,
) -> None:
    wanted = name.strip().lower()
    for project in await data.list_projects_for_user(user_id):
        if project["owner_id"] != user_id or project["id"] == exclude_id:
            continue
        if project["name"].strip().lower() == wanted:
            raise ConflictError(f"A project named '{name.strip()}' already exists")


async def _load_project(data: DataService, project_id: str) -> dict:
    project = await data.get_project_by_id(project_id)
    if not project:
        raise ResourceNotFoundError("Project", project_id, "Project not found")
    return project


async def get_project(data: DataService, user_id: str, project_id: str) -> dict:
    """Project plus its member id list, for members and the owner only."""
    project = await _load_project(data, project_id)
    if not await is_project_member(data, user_id, project_id):
        raise PermissionDeniedError("Access denied")
    members = await data.list_members(project_id)
    return {**project, "members": sorted(members)}


async def list_projects(data: DataService, user_id: str) -> list[dict]:
    projects = await data.list_projects_for_user(user_id)
    result = []
    for project in projects:
        members = await data.list_members(project["id"])
        result.append({**project, "members": sorted(members)})
    return result


async def create_project(data: DataService, user_id: str, fields: dict) -> dict:
    """Create a shared (non-personal) project owned by the caller."""
    name = fields.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Project name is required", field="name")

    supplied = {k: v for k, v in fields.items() if v is not None}
    _validate_project_fields(supplied)
    await _ensure_unique_name(data, user_id, name)

    color = fields.get("color")
    now = utc_now()
    project = {
        "id": generate_id(PREFIX_PROJECT),
        "name": sanitize_string(name, PROJECT_NAME_MAX),
        "description": sanitize_string(
            fields.get("description") or "", PROJECT_DESCRIPTION_MAX,
        ),
        "color": color.strip().lower() if color else pick_random_project_color(),
        "owner_id": user_id,
        "is_personal": False,
        "created_at": now,
        "updated_at": now,
    }
    created = await data.create_project(project)

    for member_id in fields.get("members") or []:
        member_id = normalize_optional_id(member_id)
        if not member_id or member_id == user_id:
            continue
        try:
            if not await data.get_user_by_id(member_id):
                logger.warning(
                    f"Skipping unknown initial member {member_id}",
                    extra={"project_id": project["id"]},
                )
                continue
            await data.add_project_member(project["id"], member_id)
        except Exception as e:
            logger.warning(
                f"Failed to add initial member {member_id}: {e}",
                extra={"project_id": project["id"]},
            )

    await record_activity(
        data, user_id, ActivityAction.PROJECT_CREATED,
        f'Project "{created["name"]}" created', project_id=project["id"],
    )
    members = await data.list_members(project["id"])
    return {**created, "members": sorted(members)}


async def update_project(
    data: DataService, user_id: str, project_id: str, updates: dict,
) -> dict:
    project = await _load_project(data, project_id)
    if not is_project_owner(project, user_id):
        raise PermissionDeniedError(
            "Only the project owner can update project details",
        )

    _validate_project_fields(updates)
    if "name" in updates:
        await _ensure_unique_name(data, user_id, updates["name"], exclude_id=project_id)

    changes: dict = {"updated_at": utc_now()}
    if "name" in updates:
        changes["name"] = sanitize_string(updates["name"], PROJECT_NAME_MAX)
    if "description" in updates:
        changes["description"] = sanitize_string(
            updates["description"] or "", PROJECT_DESCRIPTION_MAX,
        )
    if "color" in updates:
        changes["color"] = updates["color"].strip().lower()

    await data.update_project(project_id, changes)
    refreshed = await _load_project(data, project_id)
    await record_activity(
        data, user_id, ActivityAction.PROJECT_UPDATED,
        f'Project "{refreshed["name"]}" updated', project_id=project_id,
    )
    members = await data.list_members(project_id)
    return {**refreshed, "members": sorted(members)}


async def delete_project(data: DataService, user_id: str, project_id: str) -> None:
    """Owner only; cascades to the project's tasks and membership."""
    project = await _load_project(data, project_id)
    if not is_project_owner(project, user_id):
        raise PermissionDeniedError("Only the project owner can delete this project")

    await data.delete_project(project_id)
    logger.info(
        "Project deleted", extra={"user_id": user_id, "project_id": project_id},
    )
    await record_activity(
        data, user_id, ActivityAction.PROJECT_DELETED,
        f'Project "{project["name"]}" deleted', project_id=project_id,
    )


async def add_project_member(
    data: DataService, user_id: str, project_id: str, member_id: str | None,
) -> dict:
    project = await _load_project(data, project_id)
    if not is_project_owner(project, user_id):
        raise PermissionDeniedError("Only project owner can add members")
    if project.get("is_personal"):
        raise PermissionDeniedError("Cannot modify members of a personal project")

    member_id = normalize_optional_id(member_id)
    if not member_id:
        raise ValidationError("User ID required", field="user_id")
    member = await data.get_user_by_id(member_id)
    if not member:
        raise ResourceNotFoundError("User", member_id, "User not found")
    if member_id == project["owner_id"] or member_id in await data.list_members(project_id):
        raise ConflictError("User is already a member")

    await data.add_project_member(project_id, member_id)
    await record_activity(
        data, user_id, ActivityAction.MEMBER_ADDED,
        f"Added {member['name']} to project", project_id=project_id,
    )
    members = await data.list_members(project_id)
    return {**project, "members": sorted(members)}


async def remove_project_member(
    data: DataService, user_id: str, project_id: str, member_id: str,
) -> None:
    """Owner removes anyone but themselves; a member may remove only themselves."""
    project = await _load_project(data, project_id)
    is_owner = is_project_owner(project, user_id)
    is_self = user_id == member_id
    if not is_owner and not is_self:
        raise PermissionDeniedError("Only project owner can remove other members")
    if project.get("is_personal"):
        raise PermissionDeniedError("Cannot modify members of a personal project")
    if is_owner and is_self:
        raise PermissionDeniedError(
            "Project owner cannot leave the project. Delete the project instead.",
        )
    if member_id not in await data.list_members(project_id):
        raise ResourceNotFoundError(
            "Member", member_id, "User is not a member of this project",
        )

    await data.remove_project_member(project_id, member_id)
    await data.unassign_tasks(project_id, member_id)

    if is_self:
        details = "Left project"
    else:
        removed = await data.get_user_by_id(member_id)
        details = f"Removed {removed['name'] if removed else member_id} from project"
    await record_activity(
        data, user_id, ActivityAction.MEMBER_REMOVED, details, project_id=project_id,
    )
