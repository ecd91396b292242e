"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ProjectId, TaskId wrap opaque strings; ids are never parsed
    - All valid states encoded as Enums, no raw string matching in business logic
    - Enum values are the exact wire/storage values (e.g. "in-progress")

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
ProjectId = NewType("ProjectId", str)
TaskId = NewType("TaskId", str)
DiscordUserId = NewType("DiscordUserId", str)


# ─── Enums ───────────────────────────────────────────────────────

class TaskStatus(str, Enum):
    """Task lifecycle: transitions are unrestricted between all three."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StorageBackend(str, Enum):
    """Data service implementation selected at startup."""
    SQL = "sql"
    JSON = "json"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class LinkCodeStatus(str, Enum):
    """Status of a Discord link code as seen by the web client polling it."""
    PENDING = "pending"
    LINKED = "linked"
    EXPIRED = "expired"


class ActivityAction(str, Enum):
    """Activity log action tags, stored verbatim in activity_log.action."""
    USER_CREATED = "user_created"
    USER_UPDATED = "user_profile_updated"
    USER_DELETED = "user_deleted"
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"
    MEMBER_ADDED = "project_member_added"
    MEMBER_REMOVED = "project_member_removed"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_COMPLETED = "task_completed"
    DISCORD_LINKED = "discord_linked"
    INVITATION_SENT = "invitation_sent"
    INVITATION_RESENT = "invitation_resent"
