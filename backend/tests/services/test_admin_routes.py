"""Admin Routes — invitation lifecycle over HTTP and admin-only user management."""

import pytest

from taskhub.services.task_operations import create_task


@pytest.fixture
async def admin_headers(make_user, bearer):
    admin = await make_user("root", email="root@example.com", is_admin=True)
    return admin, await bearer(admin)


async def test_non_admin_is_403(client, make_user, bearer):
    bob = await make_user("bob")
    res = await client.get("/api/v1/admin/users", headers=await bearer(bob))
    assert res.status_code == 403
    assert res.json()["error"]["message"] == "Admin access required"


async def test_invite_accept_and_list(client, admin_headers):
    _, headers = admin_headers
    sent = await client.post(
        "/api/v1/admin/invitations", headers=headers, json={"email": "New@Example.com"},
    )
    assert sent.status_code == 201
    body = sent.json()
    assert body["invitation"]["email"] == "new@example.com"
    assert body["invitation"]["status"] == "pending"
    assert "invite_token_hash" not in body["invitation"]

    accepted = await client.post("/api/v1/invitations/accept", json={
        "token": body["invite_token"], "username": "newbie", "name": "New Person",
    })
    assert accepted.status_code == 201
    token = accepted.json()["api_token"]
    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "new@example.com"

    again = await client.post("/api/v1/invitations/accept", json={
        "token": body["invite_token"], "username": "other", "name": "Other",
    })
    assert again.status_code == 401

    listed = (await client.get("/api/v1/admin/invitations", headers=headers)).json()
    assert listed[0]["status"] == "accepted"
    assert listed[0]["username"] == "newbie"


async def test_resend_rotates_token(client, admin_headers):
    _, headers = admin_headers
    first = (await client.post(
        "/api/v1/admin/invitations", headers=headers, json={"email": "x@example.com"},
    )).json()
    resent = await client.post("/api/v1/admin/invitations/x@example.com/resend", headers=headers)
    assert resent.status_code == 200
    assert resent.json()["invite_token"] != first["invite_token"]

    stale = await client.post("/api/v1/invitations/accept", json={
        "token": first["invite_token"], "username": "x", "name": "X",
    })
    assert stale.status_code == 401


async def test_resend_unknown_is_404(client, admin_headers):
    _, headers = admin_headers
    res = await client.post("/api/v1/admin/invitations/none@example.com/resend", headers=headers)
    assert res.status_code == 404


async def test_invite_existing_email_is_409(client, admin_headers):
    _, headers = admin_headers
    res = await client.post(
        "/api/v1/admin/invitations", headers=headers, json={"email": "root@example.com"},
    )
    assert res.status_code == 409


async def test_user_listing_counts_tasks(client, admin_headers, make_user, data):
    admin, headers = admin_headers
    bob = await make_user("bob")
    personal = await data.get_personal_project(bob["id"])
    await create_task(data, bob["id"], {
        "name": "One", "date": "2099-01-01", "project_id": personal["id"],
        "assigned_to_id": bob["id"],
    })
    users = (await client.get("/api/v1/admin/users", headers=headers)).json()
    counts = {u["username"]: u["task_count"] for u in users}
    assert counts == {"root": 0, "bob": 1}


async def test_delete_user(client, admin_headers, make_user):
    admin, headers = admin_headers
    bob = await make_user("bob")
    res = await client.delete(f"/api/v1/admin/users/{bob['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json()["username"] == "bob"
    assert (await client.get(f"/api/v1/users/{bob['id']}", headers=headers)).status_code == 404

    own = await client.delete(f"/api/v1/admin/users/{admin['id']}", headers=headers)
    assert own.status_code == 400
