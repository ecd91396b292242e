"""JSON File Backend — same semantics as the SQL backend over flat files.

Tests:
    - The membership scenario holds with file storage
    - Members live inline on disk but never leak into returned project dicts
    - Activity is capped at the retention limit
    - User deletion cascades like the SQL backend
"""

import json

import pytest

from taskhub.core.constants import JSON_ACTIVITY_RETENTION
from taskhub.core.errors import PermissionDeniedError, ValidationError
from taskhub.infrastructure.json_data_service import JsonFileDataService
from taskhub.services import project_operations, task_operations, user_accounts


@pytest.fixture
def store(tmp_path):
    return JsonFileDataService(tmp_path / "data")


async def test_membership_scenario(store):
    a = await user_accounts.register_user(store, "alice", "Alice")
    b = await user_accounts.register_user(store, "bob", "Bob")
    c = await user_accounts.register_user(store, "carol", "Carol")
    p = await project_operations.create_project(store, a["id"], {"name": "P", "members": [b["id"]]})

    with pytest.raises(ValidationError):
        await task_operations.create_task(store, a["id"], {
            "name": "T", "date": "2025-12-31", "project_id": p["id"], "assigned_to_id": c["id"],
        })
    task = await task_operations.create_task(store, a["id"], {
        "name": "T", "date": "2025-12-31", "project_id": p["id"],
    })
    moved = await task_operations.update_task(store, a["id"], task["id"], {"assigned_to_id": b["id"]})
    assert moved["assigned_to_id"] == b["id"]

    with pytest.raises(PermissionDeniedError):
        await project_operations.delete_project(store, b["id"], p["id"])
    await task_operations.delete_task(store, b["id"], task["id"])
    assert await store.get_task_by_id(task["id"]) is None


async def test_members_inline_on_disk_only(store, tmp_path):
    a = await user_accounts.register_user(store, "alice", "Alice")
    b = await user_accounts.register_user(store, "bob", "Bob")
    p = await project_operations.create_project(store, a["id"], {"name": "P", "members": [b["id"]]})

    on_disk = json.loads((tmp_path / "data" / "projects.json").read_text())
    record = next(r for r in on_disk if r["id"] == p["id"])
    assert record["members"] == [b["id"]]

    loaded = await store.get_project_by_id(p["id"])
    assert "members" not in loaded
    assert await store.list_members(p["id"]) == {b["id"]}


async def test_timestamps_are_iso_strings(store):
    a = await user_accounts.register_user(store, "alice", "Alice")
    assert isinstance(a["created_at"], str)
    assert a["created_at"].endswith("+00:00")


async def test_activity_is_capped(store):
    for i in range(JSON_ACTIVITY_RETENTION + 5):
        await store.log_activity({
            "id": f"activity-{i}", "user_id": "user-1", "action": "task_updated",
            "details": str(i), "timestamp": f"2025-01-01T00:00:{i % 60:02d}+00:00",
        })
    entries = await store.list_activity("user-1", set(), JSON_ACTIVITY_RETENTION + 10)
    assert len(entries) == JSON_ACTIVITY_RETENTION


async def test_delete_user_cascades(store):
    admin = await user_accounts.register_user(store, "root", "Root", is_admin=True)
    bob = await user_accounts.register_user(store, "bob", "Bob")
    p = await project_operations.create_project(
        store, admin["id"], {"name": "Ops", "members": [bob["id"]]},
    )
    task = await task_operations.create_task(store, admin["id"], {
        "name": "T", "date": "2025-12-31", "project_id": p["id"], "assigned_to_id": bob["id"],
    })
    personal = await store.get_personal_project(bob["id"])

    await user_accounts.delete_user_account(store, admin["id"], bob["id"])

    assert await store.get_user_by_id(bob["id"]) is None
    assert await store.get_project_by_id(personal["id"]) is None
    assert await store.list_members(p["id"]) == set()
    assert (await store.get_task_by_id(task["id"]))["assigned_to_id"] is None


async def test_missing_files_are_empty(store):
    assert await store.list_users() == []
    assert await store.get_project_by_id("proj-x") is None
