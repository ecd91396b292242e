"""Authorization Helper — the project-membership rule behind every mutation.

Invariants:
    - Owner short-circuits to True without a member lookup
    - Missing project -> False (callers that need 404 load the project first)
    - Storage errors during the check are logged and treated as "not a member"
    - Nothing is cached: every call reads the current membership
"""

import logging

from taskhub.core.repository_protocols import MembershipSource

logger = logging.getLogger(__name__)


async def is_project_member(
    source: MembershipSource, user_id: str, project_id: str,
) -> bool:
    """True if user_id owns project_id or is in its member set."""
    try:
        project = await source.get_project_by_id(project_id)
        if not project:
            return False
        if project["owner_id"] == user_id:
            return True
        return user_id in await source.list_members(project_id)
    except Exception as e:
        logger.error(
            f"Membership check failed: {e}",
            extra={"user_id": user_id, "project_id": project_id},
        )
        return False


def is_project_owner(project: dict, user_id: str) -> bool:
    return project.get("owner_id") == user_id
