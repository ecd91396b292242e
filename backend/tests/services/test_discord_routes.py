"""Discord Routes — HMAC bot channel, Ed25519 interactions webhook, BotApiClient.

Tests:
    - Link-code flow end to end (Bearer issues, bot redeems)
    - Bot routes wrap payloads in {"data": ...} and need a linked account
    - Interactions reject bad signatures before dispatch
"""

import json
import time

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from httpx import ASGITransport

from taskhub.api.dependencies import get_anthropic_client
from taskhub.config import get_settings
from taskhub.infrastructure.anthropic_client import ResilientAnthropicClient
from taskhub.infrastructure.bot_api_client import BotApiClient, BotApiError
from taskhub.main import app
from tests.services.mock_anthropic import MockAnthropicClient, text_message

DISCORD_ID = "123456789012345678"


@pytest.fixture
async def linked(make_user, link_discord):
    alice = await make_user("alice")
    await link_discord(alice, DISCORD_ID)
    return alice


@pytest.fixture
def signing_key():
    """Ed25519 key whose public half is installed in the app settings."""
    private = Ed25519PrivateKey.generate()
    public_hex = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    settings = get_settings().model_copy(update={"discord_public_key": public_hex})
    app.dependency_overrides[get_settings] = lambda: settings
    yield private
    app.dependency_overrides.pop(get_settings, None)


def _signed(private, payload: dict) -> tuple[bytes, dict]:
    body = json.dumps(payload).encode()
    timestamp = str(int(time.time()))
    signature = private.sign(timestamp.encode() + body).hex()
    return body, {
        "x-signature-ed25519": signature,
        "x-signature-timestamp": timestamp,
        "content-type": "application/json",
    }


# ─── Bot channel ─────────────────────────────────────────────────

async def test_link_flow_over_http(client, make_user, bearer, bot_headers):
    alice = await make_user("alice")
    issued = await client.post("/api/v1/discord/link-codes", headers=await bearer(alice))
    code = issued.json()["code"]

    res = await client.post(
        "/api/v1/discord/link", json={"code": code.lower()},
        headers=bot_headers(DISCORD_ID, username="alice#1"),
    )
    assert res.status_code == 200
    linked = res.json()["data"]
    assert linked["discord_user_id"] == DISCORD_ID
    assert linked["discord_handle"] == "alice#1"

    status = await client.get(
        f"/api/v1/discord/link-codes/{code}", headers=await bearer(alice),
    )
    assert status.json()["status"] == "linked"


async def test_unsigned_bot_call_is_401(client):
    res = await client.get("/api/v1/discord/tasks")
    assert res.status_code == 401


async def test_unlinked_account_is_404(client, bot_headers):
    res = await client.get("/api/v1/discord/tasks", headers=bot_headers(DISCORD_ID))
    assert res.status_code == 404
    assert res.json()["error"]["type"] == "NotFoundError"


async def test_create_complete_summary(client, linked, bot_headers):
    res = await client.post(
        "/api/v1/discord/tasks", headers=bot_headers(DISCORD_ID),
        json={"name": "Write report", "date": "2099-01-01", "priority": "high"},
    )
    assert res.status_code == 201
    task = res.json()["data"]
    assert task["assigned_to_id"] == linked["id"]

    priorities = await client.get("/api/v1/discord/priorities", headers=bot_headers(DISCORD_ID))
    assert [t["id"] for t in priorities.json()["data"]] == [task["id"]]

    done = await client.put(
        "/api/v1/discord/tasks/report/complete", headers=bot_headers(DISCORD_ID),
    )
    assert done.status_code == 200
    assert done.json()["data"]["status"] == "completed"

    summary = (await client.get("/api/v1/discord/summary", headers=bot_headers(DISCORD_ID))).json()
    assert summary["data"]["totalTasks"] == 1
    assert summary["data"]["completedTasks"] == 1


async def test_create_without_date_is_400(client, linked, bot_headers):
    res = await client.post(
        "/api/v1/discord/tasks", headers=bot_headers(DISCORD_ID), json={"name": "x"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Task name and date are required"


async def test_assistant_route(client, linked, bot_headers):
    assistant = ResilientAnthropicClient(api_key="sk-ant-test", base_delay_ms=0, max_delay_ms=0)
    assistant.client = MockAnthropicClient([text_message("Focus on the report.")])
    app.dependency_overrides[get_anthropic_client] = lambda: assistant

    res = await client.post(
        "/api/v1/discord/assistant", headers=bot_headers(DISCORD_ID),
        json={"query": "What next?"},
    )
    assert res.status_code == 200
    assert res.json() == {"data": {"answer": "Focus on the report."}}


async def test_bot_api_client_against_app(client, linked):
    async with BotApiClient(
        "http://test", "test-bot-secret", transport=ASGITransport(app=app),
    ) as bot:
        created = await bot.create_task(DISCORD_ID, "Ship it", "2099-01-01")
        assert created["name"] == "Ship it"
        assert [t["id"] for t in await bot.list_tasks(DISCORD_ID)] == [created["id"]]

        with pytest.raises(BotApiError) as exc:
            await bot.complete_task(DISCORD_ID, "no such task")
        assert exc.value.http_status == 404
        assert exc.value.message == "Task not found"


async def test_bot_api_client_wrong_secret(client, linked):
    async with BotApiClient(
        "http://test", "wrong-secret", transport=ASGITransport(app=app),
    ) as bot:
        with pytest.raises(BotApiError) as exc:
            await bot.summary(DISCORD_ID)
    assert exc.value.http_status == 401


# ─── Interactions webhook ────────────────────────────────────────

async def test_ping_returns_pong(client, signing_key):
    body, headers = _signed(signing_key, {"type": 1})
    res = await client.post("/api/v1/interactions", content=body, headers=headers)
    assert res.status_code == 200
    assert res.json() == {"type": 1}


async def test_bad_signature_is_401(client, signing_key):
    body, headers = _signed(signing_key, {"type": 1})
    res = await client.post(
        "/api/v1/interactions", content=body.replace(b"1", b"2"), headers=headers,
    )
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid request signature"


async def test_missing_signature_is_401(client, signing_key):
    res = await client.post("/api/v1/interactions", json={"type": 1})
    assert res.status_code == 401


async def test_slash_command_for_linked_user(client, linked, signing_key):
    body, headers = _signed(signing_key, {
        "type": 2,
        "data": {"name": "tasks", "options": []},
        "member": {"user": {"id": DISCORD_ID, "username": "alice"}},
    })
    res = await client.post("/api/v1/interactions", content=body, headers=headers)
    assert res.status_code == 200
    assert res.json()["type"] == 4


async def test_signed_non_object_body_is_400(client, signing_key):
    body = b"[1, 2]"
    timestamp = str(int(time.time()))
    headers = {
        "x-signature-ed25519": signing_key.sign(timestamp.encode() + body).hex(),
        "x-signature-timestamp": timestamp,
        "content-type": "application/json",
    }
    res = await client.post("/api/v1/interactions", content=body, headers=headers)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Malformed interaction body"
