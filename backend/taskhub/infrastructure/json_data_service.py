"""JsonFileDataService — DataService implementation over flat JSON files.

Invariants:
    - One file per collection under data_dir; missing file == empty collection
    - Project records keep an inline "members" list on disk, but dicts returned
      to callers never carry it (membership only via list_members)
    - activity.json keeps the newest JSON_ACTIVITY_RETENTION entries
    - Writes go to a temp file then os.replace (no torn files on crash)

Design Decisions:
    - Whole-file read-modify-write per call: the file backend serves local
      development and single-user installs, not concurrent load
    - File IO is synchronous and blocks the event loop for the duration of each
      call; acceptable at single-user scale, use the SQL backend for servers
    - Datetimes serialized with isoformat at write time, so reads match the
      SQL backend's ISO string shape
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from taskhub.core.constants import JSON_ACTIVITY_RETENTION

logger = logging.getLogger(__name__)

_USERS = "users.json"
_PROJECTS = "projects.json"
_TASKS = "tasks.json"
_ACTIVITY = "activity.json"
_LINK_CODES = "link_codes.json"
_INVITATIONS = "invitations.json"


def _serialize(record: dict) -> dict:
    out = {}
    for key, value in record.items():
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            value = value.isoformat()
        elif isinstance(value, set):
            value = sorted(value)
        out[key] = value
    return out


def _public_project(record: dict) -> dict:
    return {k: v for k, v in record.items() if k != "members"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonFileDataService:
    """File-backed storage with the same dict contract as SqlDataService."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load(self, name: str) -> list[dict]:
        path = self.data_dir / name
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as fh:
            content = fh.read()
        if not content.strip():
            return []
        return json.loads(content)

    def _save(self, name: str, records: list[dict]) -> None:
        path = self.data_dir / name
        tmp = path.with_suffix(path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(records, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, path)

    def _find(self, name: str, key: str, value) -> dict | None:
        if value is None:
            return None
        for record in self._load(name):
            if record.get(key) == value:
                return record
        return None

    def _patch(self, name: str, key: str, value, updates: dict) -> None:
        records = self._load(name)
        changes = _serialize(updates)
        changes.pop(key, None)
        for record in records:
            if record.get(key) == value:
                record.update(changes)
        self._save(name, records)

    # ─── Users ──────────────────────────────────────────────────

    async def get_user_by_id(self, user_id: str) -> dict | None:
        return self._find(_USERS, "id", user_id)

    async def get_user_by_username(self, username: str) -> dict | None:
        return self._find(_USERS, "username", username)

    async def get_user_by_email(self, email: str) -> dict | None:
        return self._find(_USERS, "email", email)

    async def get_user_by_discord_id(self, discord_user_id: str) -> dict | None:
        return self._find(_USERS, "discord_user_id", discord_user_id)

    async def get_user_by_token_hash(self, token_hash: str) -> dict | None:
        return self._find(_USERS, "api_token_hash", token_hash)

    async def list_users(self) -> list[dict]:
        return self._load(_USERS)

    async def create_user(self, user: dict) -> dict:
        record = {
            "email": None, "initials": None, "color": None, "is_admin": False,
            "discord_user_id": None, "discord_handle": None,
            "discord_verified": False, "api_token_hash": None,
            "created_at": _now_iso(), "updated_at": _now_iso(),
            **_serialize(user),
        }
        users = self._load(_USERS)
        users.append(record)
        self._save(_USERS, users)
        return dict(record)

    async def update_user(self, user_id: str, updates: dict) -> None:
        self._patch(_USERS, "id", user_id, updates)

    async def delete_user(self, user_id: str) -> None:
        user = self._find(_USERS, "id", user_id)
        if not user:
            return
        tasks = self._load(_TASKS)
        for task in tasks:
            if task.get("assigned_to_id") == user_id:
                task["assigned_to_id"] = None
        self._save(_TASKS, tasks)

        owned = [p["id"] for p in self._load(_PROJECTS) if p.get("owner_id") == user_id]
        self._delete_projects(set(owned))

        projects = self._load(_PROJECTS)
        for project in projects:
            project["members"] = [m for m in project.get("members", []) if m != user_id]
        self._save(_PROJECTS, projects)

        self._save(
            _LINK_CODES,
            [c for c in self._load(_LINK_CODES) if c.get("user_id") != user_id],
        )
        invitations = []
        for invitation in self._load(_INVITATIONS):
            if invitation.get("invited_by_user_id") == user_id:
                continue
            if user.get("email") and invitation.get("email") == user["email"]:
                continue
            if invitation.get("joined_user_id") == user_id:
                invitation["joined_user_id"] = None
            invitations.append(invitation)
        self._save(_INVITATIONS, invitations)

        self._save(_USERS, [u for u in self._load(_USERS) if u.get("id") != user_id])

    # ─── Projects & Membership ──────────────────────────────────

    async def get_project_by_id(self, project_id: str) -> dict | None:
        record = self._find(_PROJECTS, "id", project_id)
        return _public_project(record) if record else None

    async def list_members(self, project_id: str) -> set[str]:
        record = self._find(_PROJECTS, "id", project_id)
        if not record:
            return set()
        return set(record.get("members", []))

    def _accessible_ids(self, user_id: str) -> set[str]:
        return {
            p["id"] for p in self._load(_PROJECTS)
            if p.get("owner_id") == user_id or user_id in p.get("members", [])
        }

    async def list_projects_for_user(self, user_id: str) -> list[dict]:
        return [
            _public_project(p) for p in self._load(_PROJECTS)
            if p.get("owner_id") == user_id or user_id in p.get("members", [])
        ]

    async def get_personal_project(self, user_id: str) -> dict | None:
        for project in self._load(_PROJECTS):
            if project.get("owner_id") == user_id and project.get("is_personal"):
                return _public_project(project)
        return None

    async def create_project(self, project: dict) -> dict:
        record = {
            "description": "", "is_personal": False,
            "created_at": _now_iso(), "updated_at": _now_iso(),
            **_serialize(project),
        }
        record["members"] = []
        projects = self._load(_PROJECTS)
        projects.append(record)
        self._save(_PROJECTS, projects)
        return _public_project(record)

    async def update_project(self, project_id: str, updates: dict) -> None:
        changes = {
            k: v for k, v in updates.items()
            if k not in ("owner_id", "members")
        }
        self._patch(_PROJECTS, "id", project_id, changes)

    def _delete_projects(self, project_ids: set[str]) -> None:
        if not project_ids:
            return
        self._save(
            _TASKS,
            [t for t in self._load(_TASKS) if t.get("project_id") not in project_ids],
        )
        self._save(
            _PROJECTS,
            [p for p in self._load(_PROJECTS) if p.get("id") not in project_ids],
        )

    async def delete_project(self, project_id: str) -> None:
        self._delete_projects({project_id})

    async def add_project_member(self, project_id: str, user_id: str) -> None:
        projects = self._load(_PROJECTS)
        for project in projects:
            if project.get("id") == project_id:
                members = project.setdefault("members", [])
                if user_id not in members:
                    members.append(user_id)
        self._save(_PROJECTS, projects)

    async def remove_project_member(self, project_id: str, user_id: str) -> None:
        projects = self._load(_PROJECTS)
        for project in projects:
            if project.get("id") == project_id:
                project["members"] = [
                    m for m in project.get("members", []) if m != user_id
                ]
        self._save(_PROJECTS, projects)

    # ─── Tasks ──────────────────────────────────────────────────

    async def get_task_by_id(self, task_id: str) -> dict | None:
        return self._find(_TASKS, "id", task_id)

    async def list_tasks_for_user(self, user_id: str) -> list[dict]:
        accessible = self._accessible_ids(user_id)
        tasks = [t for t in self._load(_TASKS) if t.get("project_id") in accessible]
        return sorted(tasks, key=lambda t: (t.get("date") or "", t.get("created_at") or ""))

    async def list_assigned_tasks(self, user_id: str) -> list[dict]:
        tasks = [
            t for t in self._load(_TASKS)
            if t.get("assigned_to_id") == user_id and not t.get("archived")
        ]
        return sorted(tasks, key=lambda t: t.get("created_at") or "", reverse=True)

    async def create_task(self, task: dict) -> dict:
        record = {
            "description": "", "assigned_to_id": None, "created_by_id": None,
            "status": "pending", "priority": "none", "archived": False,
            "completed_at": None,
            "created_at": _now_iso(), "updated_at": _now_iso(),
            **_serialize(task),
        }
        tasks = self._load(_TASKS)
        tasks.append(record)
        self._save(_TASKS, tasks)
        return dict(record)

    async def update_task(self, task_id: str, updates: dict) -> None:
        self._patch(_TASKS, "id", task_id, updates)

    async def delete_task(self, task_id: str) -> None:
        self._save(_TASKS, [t for t in self._load(_TASKS) if t.get("id") != task_id])

    async def unassign_tasks(self, project_id: str, user_id: str) -> None:
        tasks = self._load(_TASKS)
        for task in tasks:
            if task.get("project_id") == project_id and task.get("assigned_to_id") == user_id:
                task["assigned_to_id"] = None
        self._save(_TASKS, tasks)

    # ─── Activity ───────────────────────────────────────────────

    async def log_activity(self, entry: dict) -> None:
        record = {"timestamp": _now_iso(), **_serialize(entry)}
        activity = self._load(_ACTIVITY)
        activity.append(record)
        self._save(_ACTIVITY, activity[-JSON_ACTIVITY_RETENTION:])

    async def list_activity(
        self, user_id: str, project_ids: set[str], limit: int,
    ) -> list[dict]:
        entries = [
            a for a in self._load(_ACTIVITY)
            if a.get("user_id") == user_id or a.get("project_id") in project_ids
        ]
        entries.reverse()
        return entries[:limit]

    # ─── Discord Link Codes ─────────────────────────────────────

    async def create_link_code(self, link_code: dict) -> None:
        record = {"used": False, "created_at": _now_iso(), **_serialize(link_code)}
        codes = self._load(_LINK_CODES)
        codes.append(record)
        self._save(_LINK_CODES, codes)

    async def get_link_code(self, code: str) -> dict | None:
        return self._find(_LINK_CODES, "code", code)

    async def mark_link_code_used(self, code: str) -> None:
        self._patch(_LINK_CODES, "code", code, {"used": True})

    async def delete_link_codes_for_user(self, user_id: str) -> None:
        self._save(
            _LINK_CODES,
            [c for c in self._load(_LINK_CODES) if c.get("user_id") != user_id],
        )

    # ─── Invitations ────────────────────────────────────────────

    async def get_invitation(self, email: str) -> dict | None:
        return self._find(_INVITATIONS, "email", email)

    async def get_invitation_by_token_hash(self, token_hash: str) -> dict | None:
        return self._find(_INVITATIONS, "invite_token_hash", token_hash)

    async def list_invitations(self) -> list[dict]:
        invitations = self._load(_INVITATIONS)
        return sorted(invitations, key=lambda i: i.get("invited_at") or "", reverse=True)

    async def save_invitation(self, invitation: dict) -> None:
        record = _serialize(invitation)
        invitations = self._load(_INVITATIONS)
        for existing in invitations:
            if existing.get("email") == record["email"]:
                existing.update(record)
                break
        else:
            invitations.append({
                "status": "pending", "invited_at": _now_iso(), "sent_at": None,
                "joined_at": None, "joined_user_id": None, **record,
            })
        self._save(_INVITATIONS, invitations)
