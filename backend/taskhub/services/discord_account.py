"""Discord Account — link codes and the task views served to the Discord bot.

Invariants:
    - A link code is single-use and expires link_code_ttl_seconds after creation
    - Generating a new code unlinks the current Discord account and purges the
      user's previous codes (regenerate == relink)
    - A Discord id is linked to at most one user
    - Bot-facing task views only show non-archived tasks assigned to the caller
    - Task creation/completion from Discord goes through task_operations, so the
      membership rule and field validation are identical to the REST surface
"""

import logging
from datetime import date, datetime, timedelta, timezone

from taskhub.core.constants import LINK_CODE_MAX_ATTEMPTS, PREFIX_TASK
from taskhub.core.domain_types import (
    ActivityAction,
    LinkCodeStatus,
    TaskPriority,
    TaskStatus,
)
from taskhub.core.errors import (
    ConflictError,
    DatabaseError,
    ResourceNotFoundError,
    ValidationError,
)
from taskhub.core.repository_protocols import DataService
from taskhub.core.validators import generate_link_code, utc_now, validate_discord_user_id
from taskhub.services import task_operations
from taskhub.services.activity import record_activity

logger = logging.getLogger(__name__)

NOT_LINKED_MESSAGE = "Discord account not linked. Use /link command first."


def _parse_ts(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ─── Link Codes (web side) ──────────────────────────────────────

async def create_link_code(data: DataService, user_id: str, ttl_seconds: int) -> dict:
    """Unlink, purge old codes, and issue a fresh LINK-XXXXX code."""
    await data.update_user(user_id, {
        "discord_user_id": None,
        "discord_handle": None,
        "discord_verified": False,
        "updated_at": utc_now(),
    })
    await data.delete_link_codes_for_user(user_id)

    code = None
    for _ in range(LINK_CODE_MAX_ATTEMPTS):
        candidate = generate_link_code()
        if not await data.get_link_code(candidate):
            code = candidate
            break
    if code is None:
        raise DatabaseError("Failed to generate unique code", "insert")

    now = utc_now()
    expires_at = now + timedelta(seconds=ttl_seconds)
    await data.create_link_code({
        "code": code,
        "user_id": user_id,
        "expires_at": expires_at,
        "used": False,
        "created_at": now,
    })
    return {
        "code": code,
        "expires_at": expires_at.isoformat(),
        "expires_at_ms": int(expires_at.timestamp() * 1000),
    }


async def link_code_status(data: DataService, user_id: str, code: str) -> dict:
    link = await data.get_link_code(code)
    if not link or link["user_id"] != user_id:
        raise ResourceNotFoundError("LinkCode", code, "Code not found")
    if _parse_ts(link["expires_at"]) < utc_now():
        return {"status": LinkCodeStatus.EXPIRED.value}
    if link["used"]:
        user = await data.get_user_by_id(user_id)
        return {
            "status": LinkCodeStatus.LINKED.value,
            "discord_handle": user.get("discord_handle") if user else None,
            "discord_user_id": user.get("discord_user_id") if user else None,
        }
    return {"status": LinkCodeStatus.PENDING.value}


# ─── Bot Channel ────────────────────────────────────────────────

async def redeem_link_code(
    data: DataService,
    discord_user_id: str,
    code: str | None,
    discord_username: str | None = None,
) -> dict:
    """Bind discord_user_id to the user who generated `code`."""
    if not code or not code.strip():
        raise ValidationError("Link code is required", field="code")
    if not validate_discord_user_id(discord_user_id):
        raise ValidationError("Invalid Discord User ID format")

    link = await data.get_link_code(code.strip().upper())
    if not link:
        raise ResourceNotFoundError("LinkCode", code, "Invalid or expired link code")
    if _parse_ts(link["expires_at"]) < utc_now():
        raise ValidationError("Link code has expired", field="code")
    if link["used"]:
        raise ValidationError("Link code has already been used", field="code")

    existing = await data.get_user_by_discord_id(discord_user_id)
    if existing and existing["id"] != link["user_id"]:
        raise ConflictError("This Discord account is already linked to another user")

    handle = discord_username or f"User#{discord_user_id}"
    if not discord_username:
        logger.warning(
            "Linking with fallback Discord handle", extra={"principal": discord_user_id},
        )
    await data.mark_link_code_used(link["code"])
    await data.update_user(link["user_id"], {
        "discord_user_id": discord_user_id,
        "discord_handle": handle,
        "discord_verified": True,
        "updated_at": utc_now(),
    })
    await record_activity(
        data, link["user_id"], ActivityAction.DISCORD_LINKED,
        f"Linked Discord account {handle}",
    )
    return await data.get_user_by_id(link["user_id"])


async def resolve_linked_user(data: DataService, discord_user_id: str) -> dict:
    user = await data.get_user_by_discord_id(discord_user_id)
    if not user:
        raise ResourceNotFoundError("User", discord_user_id, NOT_LINKED_MESSAGE)
    return user


async def list_my_tasks(data: DataService, user: dict) -> list[dict]:
    return await data.list_assigned_tasks(user["id"])


async def create_personal_task(
    data: DataService,
    user: dict,
    name: str | None,
    due_date: str | None,
    priority: str | None = None,
) -> dict:
    """Create a task in the user's personal project, assigned to them."""
    if not name or not due_date:
        raise ValidationError("Task name and date are required")
    personal = await data.get_personal_project(user["id"])
    if not personal:
        raise ResourceNotFoundError("Project", None, "Personal project not found")
    return await task_operations.create_task(data, user["id"], {
        "name": name,
        "date": due_date,
        "project_id": personal["id"],
        "assigned_to_id": user["id"],
        "priority": priority or TaskPriority.NONE.value,
    })


async def complete_task(data: DataService, user: dict, identifier: str) -> dict:
    """Complete by exact task id, or by the first open task whose name contains the text."""
    identifier = (identifier or "").strip()
    if not identifier:
        raise ValidationError("Task identifier is required")
    assigned = await data.list_assigned_tasks(user["id"])
    if identifier.startswith(f"{PREFIX_TASK}-"):
        match = next((t for t in assigned if t["id"] == identifier), None)
    else:
        fragment = identifier.lower()
        match = next(
            (
                t for t in assigned
                if fragment in t["name"].lower()
                and t["status"] != TaskStatus.COMPLETED.value
            ),
            None,
        )
    if not match:
        raise ResourceNotFoundError("Task", identifier, "Task not found")
    return await task_operations.update_task(
        data, user["id"], match["id"], {"status": TaskStatus.COMPLETED.value},
    )


async def summarize(data: DataService, user: dict, today: date | None = None) -> dict:
    tasks = await data.list_assigned_tasks(user["id"])
    today_str = (today or utc_now().date()).isoformat()
    open_statuses = (TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value)
    projects = await data.list_projects_for_user(user["id"])
    return {
        "totalTasks": len(tasks),
        "pendingTasks": sum(1 for t in tasks if t["status"] in open_statuses),
        "completedTasks": sum(
            1 for t in tasks if t["status"] == TaskStatus.COMPLETED.value
        ),
        "overdueTasks": sum(
            1 for t in tasks
            if t["date"][:10] < today_str and t["status"] != TaskStatus.COMPLETED.value
        ),
        "totalProjects": len(projects),
    }


async def high_priority_tasks(data: DataService, user: dict) -> list[dict]:
    tasks = [
        t for t in await data.list_assigned_tasks(user["id"])
        if t["priority"] == TaskPriority.HIGH.value
    ]
    return sorted(tasks, key=lambda t: t["date"])
