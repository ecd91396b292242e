"""Task Operations — create, update and delete tasks under the membership rule.

Invariants:
    - Every mutation runs: load (NotFound) -> authorize (Permission) ->
      validate supplied fields, first violation wins (Validation) ->
      assignee/target-project cross-check -> persist -> return refreshed task
    - A task's assigned_to_id is None or a member/owner of its current project
    - Any member or owner of the project may mutate its tasks
    - completed_at is stamped when status becomes completed, cleared when it leaves

Design Decisions:
    - Plain async functions with the DataService injected as first argument:
      no module state, the route or Discord handler owns the storage choice
    - Blank assignee ids ("" or whitespace) mean unassigned
"""

import logging

from taskhub.core.constants import (
    PREFIX_TASK,
    TASK_DESCRIPTION_MAX,
    TASK_NAME_MAX,
    TASK_NAME_MIN,
)
from taskhub.core.domain_types import ActivityAction, TaskPriority, TaskStatus
from taskhub.core.errors import (
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
    validate_date,
    validate_priority,
    validate_status,
    validate_string,
)
from taskhub.services.activity import record_activity
from taskhub.services.authorization import is_project_member

logger = logging.getLogger(__name__)

_NAME_MESSAGE = f"Task name must be {TASK_NAME_MIN}-{TASK_NAME_MAX} characters"
_DESCRIPTION_MESSAGE = f"Description must be less than {TASK_DESCRIPTION_MAX} characters"
_PRIORITY_MESSAGE = "Invalid priority. Must be: none, low, medium, or high"
_STATUS_MESSAGE = "Invalid status. Must be: pending, in-progress, or completed"


def _validate_task_fields(fields: dict) -> None:
    """Field-level checks for whichever fields are present."""
    if "name" in fields and not validate_string(
        fields["name"], TASK_NAME_MIN, TASK_NAME_MAX,
    ):
        raise ValidationError(_NAME_MESSAGE, field="name")
    description = fields.get("description")
    if description is not None and not validate_string(
        description, 0, TASK_DESCRIPTION_MAX,
    ):
        raise ValidationError(_DESCRIPTION_MESSAGE, field="description")
    if "date" in fields and not validate_date(fields["date"]):
        raise ValidationError("Invalid date format", field="date")
    if "status" in fields and (
        fields["status"] is None or not validate_status(fields["status"])
    ):
        raise ValidationError(_STATUS_MESSAGE, field="status")
    if "priority" in fields and (
        fields["priority"] is None or not validate_priority(fields["priority"])
    ):
        raise ValidationError(_PRIORITY_MESSAGE, field="priority")


async def create_task(data: DataService, user_id: str, fields: dict) -> dict:
    """Create a task in a project the caller belongs to."""
    name = fields.get("name")
    date = fields.get("date")
    project_id = fields.get("project_id")
    if not name or not date or not project_id:
        raise ValidationError("Missing required fields: name, date, project_id")

    project = await data.get_project_by_id(project_id)
    if not project:
        raise ResourceNotFoundError("Project", project_id, "Project not found")
    if not await is_project_member(data, user_id, project_id):
        raise PermissionDeniedError("You are not a member of this project")

    supplied = {k: v for k, v in fields.items() if v is not None}
    _validate_task_fields(supplied)

    assignee = normalize_optional_id(fields.get("assigned_to_id"))
    if assignee and not await is_project_member(data, assignee, project_id):
        raise ValidationError(
            "Assigned user is not a member of this project", field="assigned_to_id",
        )

    status = (fields.get("status") or TaskStatus.PENDING.value).strip().lower()
    now = utc_now()
    task = {
        "id": generate_id(PREFIX_TASK),
        "name": sanitize_string(name, TASK_NAME_MAX),
        "description": sanitize_string(fields.get("description") or "", TASK_DESCRIPTION_MAX),
        "date": date.strip(),
        "project_id": project_id,
        "assigned_to_id": assignee,
        "created_by_id": user_id,
        "status": status,
        "priority": (fields.get("priority") or TaskPriority.NONE.value).strip().lower(),
        "archived": False,
        "completed_at": now if status == TaskStatus.COMPLETED.value else None,
        "created_at": now,
        "updated_at": now,
    }
    created = await data.create_task(task)
    logger.info(
        "Task created",
        extra={"user_id": user_id, "project_id": project_id, "task_id": task["id"]},
    )
    await record_activity(
        data, user_id, ActivityAction.TASK_CREATED,
        f"Created task: {task['name']}", task_id=task["id"], project_id=project_id,
    )
    return created


async def update_task(
    data: DataService, user_id: str, task_id: str, updates: dict,
) -> dict:
    """Apply a partial update; only keys present in `updates` are touched."""
    task = await data.get_task_by_id(task_id)
    if not task:
        raise ResourceNotFoundError("Task", task_id, "Task not found")
    if not await is_project_member(data, user_id, task["project_id"]):
        raise PermissionDeniedError("Access denied")

    _validate_task_fields(updates)

    requested_project = normalize_optional_id(updates.get("project_id"))
    moving = requested_project is not None and requested_project != task["project_id"]
    target_project_id = requested_project if moving else task["project_id"]

    assignee = normalize_optional_id(updates.get("assigned_to_id"))
    if assignee and not await is_project_member(data, assignee, target_project_id):
        raise ValidationError(
            "Assigned user is not a member of the target project",
            field="assigned_to_id",
        )
    if moving:
        if not await data.get_project_by_id(target_project_id):
            raise ResourceNotFoundError("Project", target_project_id, "Project not found")
        if not await is_project_member(data, user_id, target_project_id):
            raise PermissionDeniedError("Access denied to target project")
        current_assignee = task.get("assigned_to_id")
        if (
            "assigned_to_id" not in updates
            and current_assignee
            and not await is_project_member(data, current_assignee, target_project_id)
        ):
            raise ValidationError(
                "Assigned user is not a member of the target project",
                field="assigned_to_id",
            )

    now = utc_now()
    changes: dict = {"updated_at": now}
    if "name" in updates:
        changes["name"] = sanitize_string(updates["name"], TASK_NAME_MAX)
    if "description" in updates:
        changes["description"] = sanitize_string(
            updates["description"] or "", TASK_DESCRIPTION_MAX,
        )
    if "date" in updates:
        changes["date"] = updates["date"].strip()
    if "assigned_to_id" in updates:
        changes["assigned_to_id"] = assignee
    if "priority" in updates:
        changes["priority"] = updates["priority"].strip().lower()
    if "archived" in updates and updates["archived"] is not None:
        changes["archived"] = bool(updates["archived"])
    if moving:
        changes["project_id"] = target_project_id

    became_completed = False
    if "status" in updates:
        status = updates["status"].strip().lower()
        changes["status"] = status
        if status == TaskStatus.COMPLETED.value:
            if task.get("status") != TaskStatus.COMPLETED.value:
                changes["completed_at"] = now
                became_completed = True
        else:
            changes["completed_at"] = None

    await data.update_task(task_id, changes)
    refreshed = await data.get_task_by_id(task_id)

    action = ActivityAction.TASK_COMPLETED if became_completed else ActivityAction.TASK_UPDATED
    verb = "Completed" if became_completed else "Updated"
    await record_activity(
        data, user_id, action, f"{verb} task: {refreshed['name']}",
        task_id=task_id, project_id=refreshed["project_id"],
    )
    return refreshed


async def delete_task(data: DataService, user_id: str, task_id: str) -> None:
    """Any member or owner of the task's project may delete it."""
    task = await data.get_task_by_id(task_id)
    if not task:
        raise ResourceNotFoundError("Task", task_id, "Task not found")
    if not await is_project_member(data, user_id, task["project_id"]):
        raise PermissionDeniedError("Access denied")

    await data.delete_task(task_id)
    logger.info(
        "Task deleted",
        extra={"user_id": user_id, "project_id": task["project_id"], "task_id": task_id},
    )
    await record_activity(
        data, user_id, ActivityAction.TASK_DELETED, f"Deleted task: {task['name']}",
        task_id=task_id, project_id=task["project_id"],
    )


async def get_task(data: DataService, user_id: str, task_id: str) -> dict:
    task = await data.get_task_by_id(task_id)
    if not task:
        raise ResourceNotFoundError("Task", task_id, "Task not found")
    if not await is_project_member(data, user_id, task["project_id"]):
        raise PermissionDeniedError("Access denied")
    return task


async def list_tasks(
    data: DataService, user_id: str, project_id: str | None = None,
) -> list[dict]:
    """Tasks across the caller's projects, optionally narrowed to one project."""
    if project_id:
        if not await is_project_member(data, user_id, project_id):
            raise PermissionDeniedError("Access denied")
    tasks = await data.list_tasks_for_user(user_id)
    if project_id:
        tasks = [t for t in tasks if t["project_id"] == project_id]
    return tasks
