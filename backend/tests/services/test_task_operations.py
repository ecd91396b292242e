"""Task Operations — membership, validation order and assignee invariant.

Tests:
    - Owner/member/non-member scenario across create, reassign and delete
    - Field limits and defaults on create
    - completed_at follows status transitions
    - Moving a task re-checks the caller and the assignee against the target
"""

import pytest

from taskhub.core.errors import (
    PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from taskhub.services import project_operations, task_operations


@pytest.fixture
async def team(data, make_user):
    """A owns P with member B; C is an outsider."""
    a = await make_user("alice")
    b = await make_user("bob")
    c = await make_user("carol")
    project = await project_operations.create_project(
        data, a["id"], {"name": "Launch", "members": [b["id"]]},
    )
    return {"a": a, "b": b, "c": c, "project": project}


def _fields(project_id, **extra):
    return {"name": "Write docs", "date": "2025-12-31", "project_id": project_id, **extra}


async def test_membership_scenario(data, team):
    a, b, c, p = team["a"], team["b"], team["c"], team["project"]

    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(
            data, a["id"], _fields(p["id"], assigned_to_id=c["id"]),
        )
    assert exc.value.message == "Assigned user is not a member of this project"

    task = await task_operations.create_task(data, a["id"], _fields(p["id"]))
    updated = await task_operations.update_task(
        data, a["id"], task["id"], {"assigned_to_id": b["id"]},
    )
    assert updated["assigned_to_id"] == b["id"]

    with pytest.raises(PermissionDeniedError):
        await project_operations.delete_project(data, b["id"], p["id"])

    await task_operations.delete_task(data, b["id"], task["id"])
    assert await data.get_task_by_id(task["id"]) is None


async def test_create_defaults(data, team):
    task = await task_operations.create_task(
        data, team["a"]["id"], _fields(team["project"]["id"]),
    )
    assert task["status"] == "pending"
    assert task["priority"] == "none"
    assert task["assigned_to_id"] is None
    assert task["created_by_id"] == team["a"]["id"]
    assert task["completed_at"] is None


async def test_name_length_limit(data, team):
    p = team["project"]["id"]
    ok = await task_operations.create_task(data, team["a"]["id"], _fields(p, name="x" * 200))
    assert len(ok["name"]) == 200
    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(data, team["a"]["id"], _fields(p, name="x" * 201))
    assert exc.value.message == "Task name must be 1-200 characters"


async def test_missing_required_fields(data, team):
    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(data, team["a"]["id"], {"name": "x"})
    assert exc.value.message == "Missing required fields: name, date, project_id"


async def test_unknown_project_is_not_found(data, team):
    with pytest.raises(ResourceNotFoundError):
        await task_operations.create_task(data, team["a"]["id"], _fields("proj-missing"))


async def test_non_member_cannot_create(data, team):
    with pytest.raises(PermissionDeniedError) as exc:
        await task_operations.create_task(data, team["c"]["id"], _fields(team["project"]["id"]))
    assert exc.value.message == "You are not a member of this project"


async def test_invalid_priority_and_status(data, team):
    p = team["project"]["id"]
    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(data, team["a"]["id"], _fields(p, priority="urgent"))
    assert exc.value.message == "Invalid priority. Must be: none, low, medium, or high"
    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(data, team["a"]["id"], _fields(p, status="done"))
    assert exc.value.message == "Invalid status. Must be: pending, in-progress, or completed"


async def test_first_violation_wins(data, team):
    with pytest.raises(ValidationError) as exc:
        await task_operations.create_task(
            data, team["a"]["id"],
            _fields(team["project"]["id"], name="x" * 300, date="someday"),
        )
    assert exc.value.field == "name"


async def test_completed_at_follows_status(data, team):
    a = team["a"]["id"]
    task = await task_operations.create_task(data, a, _fields(team["project"]["id"]))

    done = await task_operations.update_task(data, a, task["id"], {"status": "completed"})
    assert done["completed_at"] is not None

    again = await task_operations.update_task(data, a, task["id"], {"status": "completed"})
    assert again["completed_at"] == done["completed_at"]

    reopened = await task_operations.update_task(data, a, task["id"], {"status": "in-progress"})
    assert reopened["completed_at"] is None


async def test_blank_assignee_means_unassigned(data, team):
    a = team["a"]["id"]
    task = await task_operations.create_task(
        data, a, _fields(team["project"]["id"], assigned_to_id=team["b"]["id"]),
    )
    cleared = await task_operations.update_task(data, a, task["id"], {"assigned_to_id": "  "})
    assert cleared["assigned_to_id"] is None


async def test_outsider_cannot_update(data, team):
    task = await task_operations.create_task(
        data, team["a"]["id"], _fields(team["project"]["id"]),
    )
    with pytest.raises(PermissionDeniedError):
        await task_operations.update_task(data, team["c"]["id"], task["id"], {"name": "x"})


async def test_move_requires_caller_membership_in_target(data, team):
    a, c = team["a"], team["c"]
    task = await task_operations.create_task(data, a["id"], _fields(team["project"]["id"]))
    carol_personal = await data.get_personal_project(c["id"])
    with pytest.raises(PermissionDeniedError) as exc:
        await task_operations.update_task(
            data, a["id"], task["id"], {"project_id": carol_personal["id"]},
        )
    assert exc.value.message == "Access denied to target project"


async def test_move_rechecks_existing_assignee(data, team):
    a, b = team["a"], team["b"]
    task = await task_operations.create_task(
        data, a["id"], _fields(team["project"]["id"], assigned_to_id=b["id"]),
    )
    alice_personal = await data.get_personal_project(a["id"])
    with pytest.raises(ValidationError) as exc:
        await task_operations.update_task(
            data, a["id"], task["id"], {"project_id": alice_personal["id"]},
        )
    assert exc.value.message == "Assigned user is not a member of the target project"

    moved = await task_operations.update_task(
        data, a["id"], task["id"],
        {"project_id": alice_personal["id"], "assigned_to_id": None},
    )
    assert moved["project_id"] == alice_personal["id"]
    assert moved["assigned_to_id"] is None


async def test_get_and_list_tasks(data, team):
    a, b, c = team["a"], team["b"], team["c"]
    p = team["project"]["id"]
    task = await task_operations.create_task(data, a["id"], _fields(p))

    assert (await task_operations.get_task(data, b["id"], task["id"]))["id"] == task["id"]
    with pytest.raises(PermissionDeniedError):
        await task_operations.get_task(data, c["id"], task["id"])

    listed = await task_operations.list_tasks(data, b["id"], p)
    assert [t["id"] for t in listed] == [task["id"]]
    with pytest.raises(PermissionDeniedError):
        await task_operations.list_tasks(data, c["id"], p)


async def test_mutations_are_logged(data, team):
    a = team["a"]["id"]
    task = await task_operations.create_task(data, a, _fields(team["project"]["id"]))
    await task_operations.update_task(data, a, task["id"], {"status": "completed"})
    entries = await data.list_activity(a, {team["project"]["id"]}, 100)
    actions = {e["action"] for e in entries if e.get("task_id") == task["id"]}
    assert {"task_created", "task_completed"} <= actions
