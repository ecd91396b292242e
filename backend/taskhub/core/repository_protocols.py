"""Boundary Protocols — contracts between business logic and storage.

Invariants:
    - Business logic NEVER imports a storage implementation, only these Protocols
    - Entities cross the boundary as plain dicts; timestamp fields come back as
      ISO-8601 strings, and may be passed in as datetime objects
    - Project dicts never carry a members field; membership is only reachable
      through MembershipSource.list_members (one shape for every backend)
    - Lookups return None/empty for absent entities; storage failures raise

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async methods: implementations do IO; injected per request, never global
"""

from typing import Protocol


class MembershipSource(Protocol):
    """Single membership-query capability used by the authorization helper."""
    async def get_project_by_id(self, project_id: str) -> dict | None: ...
    async def list_members(self, project_id: str) -> set[str]: ...


class UserStore(Protocol):
    async def get_user_by_id(self, user_id: str) -> dict | None: ...
    async def get_user_by_username(self, username: str) -> dict | None: ...
    async def get_user_by_email(self, email: str) -> dict | None: ...
    async def get_user_by_discord_id(self, discord_user_id: str) -> dict | None: ...
    async def get_user_by_token_hash(self, token_hash: str) -> dict | None: ...
    async def list_users(self) -> list[dict]: ...
    async def create_user(self, user: dict) -> dict: ...
    async def update_user(self, user_id: str, updates: dict) -> None: ...
    async def delete_user(self, user_id: str) -> None:
        """Unassign tasks, drop personal projects, memberships, link codes and invitations."""
        ...


class ProjectStore(MembershipSource, Protocol):
    async def list_projects_for_user(self, user_id: str) -> list[dict]: ...
    async def get_personal_project(self, user_id: str) -> dict | None: ...
    async def create_project(self, project: dict) -> dict: ...
    async def update_project(self, project_id: str, updates: dict) -> None: ...
    async def delete_project(self, project_id: str) -> None:
        """Cascades to the project's tasks and membership rows."""
        ...
    async def add_project_member(self, project_id: str, user_id: str) -> None: ...
    async def remove_project_member(self, project_id: str, user_id: str) -> None: ...


class TaskStore(Protocol):
    async def get_task_by_id(self, task_id: str) -> dict | None: ...
    async def list_tasks_for_user(self, user_id: str) -> list[dict]:
        """Tasks in every project the user owns or belongs to, by due date."""
        ...
    async def list_assigned_tasks(self, user_id: str) -> list[dict]:
        """Non-archived tasks assigned to the user, newest first."""
        ...
    async def create_task(self, task: dict) -> dict: ...
    async def update_task(self, task_id: str, updates: dict) -> None: ...
    async def delete_task(self, task_id: str) -> None: ...
    async def unassign_tasks(self, project_id: str, user_id: str) -> None:
        """Clear assigned_to_id on the project's tasks assigned to user_id."""
        ...


class ActivityStore(Protocol):
    async def log_activity(self, entry: dict) -> None: ...
    async def list_activity(
        self, user_id: str, project_ids: set[str], limit: int,
    ) -> list[dict]:
        """Entries by the user or on the given projects, newest first."""
        ...


class LinkCodeStore(Protocol):
    async def create_link_code(self, link_code: dict) -> None: ...
    async def get_link_code(self, code: str) -> dict | None: ...
    async def mark_link_code_used(self, code: str) -> None: ...
    async def delete_link_codes_for_user(self, user_id: str) -> None: ...


class InvitationStore(Protocol):
    async def get_invitation(self, email: str) -> dict | None: ...
    async def get_invitation_by_token_hash(self, token_hash: str) -> dict | None: ...
    async def list_invitations(self) -> list[dict]: ...
    async def save_invitation(self, invitation: dict) -> None:
        """Insert or update, keyed by email."""
        ...


class DataService(
    UserStore, ProjectStore, TaskStore, ActivityStore,
    LinkCodeStore, InvitationStore, Protocol,
):
    """Full storage contract, implemented by SqlDataService and JsonFileDataService."""
