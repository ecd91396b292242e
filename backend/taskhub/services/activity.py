"""Activity Log — record and read the audit trail of mutations.

Invariants:
    - record_activity never fails the mutation that triggered it: storage
      errors are logged at WARNING and the caller continues
    - list_recent_activity only returns entries by the caller or on projects
      the caller can currently access
"""

import logging

from taskhub.core.constants import MAX_ACTIVITY_ITEMS, PREFIX_ACTIVITY
from taskhub.core.domain_types import ActivityAction
from taskhub.core.repository_protocols import ActivityStore, DataService
from taskhub.core.validators import generate_id, utc_now

logger = logging.getLogger(__name__)


async def record_activity(
    data: ActivityStore,
    user_id: str | None,
    action: ActivityAction,
    details: str,
    task_id: str | None = None,
    project_id: str | None = None,
) -> None:
    entry = {
        "id": generate_id(PREFIX_ACTIVITY),
        "user_id": user_id,
        "task_id": task_id,
        "project_id": project_id,
        "action": action.value,
        "details": details,
        "timestamp": utc_now(),
    }
    try:
        await data.log_activity(entry)
    except Exception as e:
        logger.warning(
            f"Failed to record activity {action.value}: {e}",
            extra={"user_id": user_id, "project_id": project_id, "task_id": task_id},
        )


async def list_recent_activity(
    data: DataService, user_id: str, limit: int = MAX_ACTIVITY_ITEMS,
) -> list[dict]:
    projects = await data.list_projects_for_user(user_id)
    project_ids = {p["id"] for p in projects}
    limit = max(1, min(limit, MAX_ACTIVITY_ITEMS))
    return await data.list_activity(user_id, project_ids, limit)
