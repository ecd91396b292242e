"""SqlDataService — DataService implementation over an async SQLAlchemy session.

Invariants:
    - One instance per request, bound to that request's AsyncSession
    - Every mutating method commits before returning (last write wins)
    - Rows leave as dicts: datetimes become ISO-8601 strings with UTC offset
    - Project deletion removes tasks and member rows explicitly, so cascades
      hold even on SQLite connections without foreign-key enforcement

Design Decisions:
    - Owner kept out of project_members: owner check is a column compare,
      membership is one indexed lookup
    - SQLAlchemy errors are not caught here: DatabaseSessionManager maps them
      to DatabaseError at the session boundary
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.activity import ActivityEntry
from taskhub.models.discord_link import DiscordLinkCode
from taskhub.models.invitation import Invitation
from taskhub.models.project import Project, ProjectMember
from taskhub.models.task import Task
from taskhub.models.user import User

logger = logging.getLogger(__name__)


def _iso(value):
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


def _to_dict(row) -> dict:
    return {c.key: _iso(getattr(row, c.key)) for c in row.__table__.columns}


def _coerce(model, values: dict) -> dict:
    """Keep known columns; parse ISO strings handed to DateTime columns."""
    columns = {c.key: c for c in model.__table__.columns}
    out = {}
    for key, value in values.items():
        column = columns.get(key)
        if column is None:
            continue
        if isinstance(value, str) and column.type.python_type is datetime:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        out[key] = value
    return out


class SqlDataService:
    """Relational storage for users, projects, tasks, activity, link codes, invitations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Users ──────────────────────────────────────────────────

    async def _first(self, stmt) -> dict | None:
        result = await self.db.execute(
            stmt.execution_options(populate_existing=True),
        )
        row = result.scalars().first()
        return _to_dict(row) if row else None

    async def _all(self, stmt) -> list[dict]:
        result = await self.db.execute(
            stmt.execution_options(populate_existing=True),
        )
        return [_to_dict(row) for row in result.scalars().all()]

    async def get_user_by_id(self, user_id: str) -> dict | None:
        return await self._first(select(User).where(User.id == user_id))

    async def get_user_by_username(self, username: str) -> dict | None:
        return await self._first(select(User).where(User.username == username))

    async def get_user_by_email(self, email: str) -> dict | None:
        return await self._first(select(User).where(User.email == email))

    async def get_user_by_discord_id(self, discord_user_id: str) -> dict | None:
        return await self._first(
            select(User).where(User.discord_user_id == discord_user_id),
        )

    async def get_user_by_token_hash(self, token_hash: str) -> dict | None:
        return await self._first(
            select(User).where(User.api_token_hash == token_hash),
        )

    async def list_users(self) -> list[dict]:
        return await self._all(select(User).order_by(User.created_at))

    async def create_user(self, user: dict) -> dict:
        row = User(**_coerce(User, user))
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return _to_dict(row)

    async def update_user(self, user_id: str, updates: dict) -> None:
        values = _coerce(User, updates)
        values.pop("id", None)
        if not values:
            return
        await self.db.execute(update(User).where(User.id == user_id).values(**values))
        await self.db.commit()

    async def delete_user(self, user_id: str) -> None:
        user = await self.get_user_by_id(user_id)
        if not user:
            return
        await self.db.execute(
            update(Task).where(Task.assigned_to_id == user_id)
            .values(assigned_to_id=None),
        )
        owned = await self.db.execute(
            select(Project.id).where(Project.owner_id == user_id),
        )
        owned_ids = list(owned.scalars().all())
        if owned_ids:
            await self._delete_projects(owned_ids)
        await self.db.execute(
            delete(ProjectMember).where(ProjectMember.user_id == user_id),
        )
        await self.db.execute(
            delete(DiscordLinkCode).where(DiscordLinkCode.user_id == user_id),
        )
        invitation_filter = Invitation.invited_by_user_id == user_id
        if user.get("email"):
            invitation_filter = or_(invitation_filter, Invitation.email == user["email"])
        await self.db.execute(delete(Invitation).where(invitation_filter))
        await self.db.execute(
            update(Invitation).where(Invitation.joined_user_id == user_id)
            .values(joined_user_id=None),
        )
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()

    # ─── Projects & Membership ──────────────────────────────────

    async def get_project_by_id(self, project_id: str) -> dict | None:
        return await self._first(select(Project).where(Project.id == project_id))

    async def list_members(self, project_id: str) -> set[str]:
        result = await self.db.execute(
            select(ProjectMember.user_id).where(ProjectMember.project_id == project_id),
        )
        return set(result.scalars().all())

    def _accessible_project_ids(self, user_id: str):
        member_of = select(ProjectMember.project_id).where(
            ProjectMember.user_id == user_id,
        )
        return select(Project.id).where(
            or_(Project.owner_id == user_id, Project.id.in_(member_of)),
        )

    async def list_projects_for_user(self, user_id: str) -> list[dict]:
        return await self._all(
            select(Project)
            .where(Project.id.in_(self._accessible_project_ids(user_id)))
            .order_by(Project.created_at),
        )

    async def get_personal_project(self, user_id: str) -> dict | None:
        return await self._first(
            select(Project)
            .where(Project.owner_id == user_id, Project.is_personal.is_(True))
            .order_by(Project.created_at)
            .limit(1),
        )

    async def create_project(self, project: dict) -> dict:
        row = Project(**_coerce(Project, project))
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return _to_dict(row)

    async def update_project(self, project_id: str, updates: dict) -> None:
        values = _coerce(Project, updates)
        for immutable in ("id", "owner_id"):
            values.pop(immutable, None)
        if not values:
            return
        await self.db.execute(
            update(Project).where(Project.id == project_id).values(**values),
        )
        await self.db.commit()

    async def _delete_projects(self, project_ids: list[str]) -> None:
        await self.db.execute(delete(Task).where(Task.project_id.in_(project_ids)))
        await self.db.execute(
            delete(ProjectMember).where(ProjectMember.project_id.in_(project_ids)),
        )
        await self.db.execute(delete(Project).where(Project.id.in_(project_ids)))

    async def delete_project(self, project_id: str) -> None:
        await self._delete_projects([project_id])
        await self.db.commit()

    async def add_project_member(self, project_id: str, user_id: str) -> None:
        existing = await self.db.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            ),
        )
        if existing.scalar_one_or_none():
            return
        self.db.add(ProjectMember(project_id=project_id, user_id=user_id))
        await self.db.commit()

    async def remove_project_member(self, project_id: str, user_id: str) -> None:
        await self.db.execute(
            delete(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            ),
        )
        await self.db.commit()

    # ─── Tasks ──────────────────────────────────────────────────

    async def get_task_by_id(self, task_id: str) -> dict | None:
        return await self._first(select(Task).where(Task.id == task_id))

    async def list_tasks_for_user(self, user_id: str) -> list[dict]:
        return await self._all(
            select(Task)
            .where(Task.project_id.in_(self._accessible_project_ids(user_id)))
            .order_by(Task.date, Task.created_at),
        )

    async def list_assigned_tasks(self, user_id: str) -> list[dict]:
        return await self._all(
            select(Task)
            .where(Task.assigned_to_id == user_id, Task.archived.is_(False))
            .order_by(Task.created_at.desc()),
        )

    async def create_task(self, task: dict) -> dict:
        row = Task(**_coerce(Task, task))
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return _to_dict(row)

    async def update_task(self, task_id: str, updates: dict) -> None:
        values = _coerce(Task, updates)
        values.pop("id", None)
        if not values:
            return
        await self.db.execute(update(Task).where(Task.id == task_id).values(**values))
        await self.db.commit()

    async def delete_task(self, task_id: str) -> None:
        await self.db.execute(delete(Task).where(Task.id == task_id))
        await self.db.commit()

    async def unassign_tasks(self, project_id: str, user_id: str) -> None:
        await self.db.execute(
            update(Task)
            .where(Task.project_id == project_id, Task.assigned_to_id == user_id)
            .values(assigned_to_id=None),
        )
        await self.db.commit()

    # ─── Activity ───────────────────────────────────────────────

    async def log_activity(self, entry: dict) -> None:
        """Insert one entry; a failed insert is rolled back before re-raising."""
        self.db.add(ActivityEntry(**_coerce(ActivityEntry, entry)))
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def list_activity(
        self, user_id: str, project_ids: set[str], limit: int,
    ) -> list[dict]:
        condition = ActivityEntry.user_id == user_id
        if project_ids:
            condition = or_(condition, ActivityEntry.project_id.in_(project_ids))
        return await self._all(
            select(ActivityEntry)
            .where(condition)
            .order_by(ActivityEntry.timestamp.desc())
            .limit(limit),
        )

    # ─── Discord Link Codes ─────────────────────────────────────

    async def create_link_code(self, link_code: dict) -> None:
        self.db.add(DiscordLinkCode(**_coerce(DiscordLinkCode, link_code)))
        await self.db.commit()

    async def get_link_code(self, code: str) -> dict | None:
        return await self._first(
            select(DiscordLinkCode).where(DiscordLinkCode.code == code),
        )

    async def mark_link_code_used(self, code: str) -> None:
        await self.db.execute(
            update(DiscordLinkCode).where(DiscordLinkCode.code == code)
            .values(used=True),
        )
        await self.db.commit()

    async def delete_link_codes_for_user(self, user_id: str) -> None:
        await self.db.execute(
            delete(DiscordLinkCode).where(DiscordLinkCode.user_id == user_id),
        )
        await self.db.commit()

    # ─── Invitations ────────────────────────────────────────────

    async def get_invitation(self, email: str) -> dict | None:
        return await self._first(select(Invitation).where(Invitation.email == email))

    async def get_invitation_by_token_hash(self, token_hash: str) -> dict | None:
        return await self._first(
            select(Invitation).where(Invitation.invite_token_hash == token_hash),
        )

    async def list_invitations(self) -> list[dict]:
        return await self._all(
            select(Invitation).order_by(Invitation.invited_at.desc()),
        )

    async def save_invitation(self, invitation: dict) -> None:
        values = _coerce(Invitation, invitation)
        row = await self.db.get(Invitation, values["email"])
        if row is None:
            self.db.add(Invitation(**values))
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await self.db.commit()
