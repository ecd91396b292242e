"""Discord Commands — dispatch, handler payloads, error conversion."""

from taskhub.services.discord_commands import (
    COMMANDS,
    EPHEMERAL_FLAG,
    HANDLERS,
    CommandContext,
    InteractionResponseType,
    dispatch_command,
    handle_interaction,
)
from taskhub.services import discord_account

DISCORD_ID = "123456789012345678"


def _ctx(data, options=None, assistant=None, username="tester"):
    return CommandContext(
        data=data, discord_user_id=DISCORD_ID, discord_username=username,
        options=options or {}, assistant=assistant,
    )


def _command(name, options=None, user_id=DISCORD_ID):
    return {
        "type": 2,
        "data": {"name": name, "options": [
            {"name": k, "type": 3, "value": v} for k, v in (options or {}).items()
        ]},
        "member": {"user": {"id": user_id, "username": "tester"}},
    }


def test_registry_and_handlers_agree():
    assert {c["name"] for c in COMMANDS} == set(HANDLERS) == {
        "tasks", "create", "complete", "summary", "priorities", "claude", "link", "help",
    }


async def test_ping_gets_pong(data):
    assert await handle_interaction({"type": 1}, data) == {"type": InteractionResponseType.PONG}


async def test_unknown_command(data):
    response = await dispatch_command("dance", _ctx(data))
    assert response["data"]["content"] == "❌ Unknown command"
    assert response["data"]["flags"] == EPHEMERAL_FLAG


async def test_unlinked_user_gets_ephemeral_hint(data):
    response = await handle_interaction(_command("tasks"), data)
    assert response["data"]["flags"] == EPHEMERAL_FLAG
    assert "Use /link command first" in response["data"]["content"]


async def test_link_then_create_and_complete(data, make_user):
    alice = await make_user("alice")
    issued = await discord_account.create_link_code(data, alice["id"], 300)

    linked = await handle_interaction(_command("link", {"code": issued["code"]}), data)
    assert "alice" in linked["data"]["embeds"][0]["description"]

    created = await handle_interaction(
        _command("create", {"title": "Ship it", "due": "2025-12-31", "priority": "high"}), data,
    )
    fields = {f["name"]: f["value"] for f in created["data"]["embeds"][0]["fields"]}
    assert fields["📝 Title"] == "Ship it"
    assert fields["⭐ Priority"] == "high"

    listed = await handle_interaction(_command("tasks"), data)
    assert "Ship it" in listed["data"]["embeds"][0]["fields"][-1]["value"]

    done = await handle_interaction(_command("complete", {"task": "ship"}), data)
    assert done["data"]["embeds"][0]["title"] == "✅ Task Completed"


async def test_validation_error_becomes_chat_message(data, make_user, link_discord):
    alice = await make_user("alice")
    await link_discord(alice, DISCORD_ID)
    response = await dispatch_command(
        "create", _ctx(data, {"title": "x", "due": "not-a-date"}),
    )
    assert response["data"]["content"] == "❌ Invalid date format"
    assert response["data"]["flags"] == EPHEMERAL_FLAG


async def test_missing_options_prompt_usage(data):
    response = await dispatch_command("create", _ctx(data))
    assert "Usage" in response["data"]["content"]


async def test_unexpected_exception_is_generic(data):
    class _Broken:
        async def get_user_by_discord_id(self, discord_user_id):
            raise RuntimeError("boom")

    response = await dispatch_command("tasks", _ctx(_Broken()))
    assert response["data"]["content"] == "❌ An error occurred while processing your command."


async def test_claude_uses_assistant(data, make_user, link_discord):
    alice = await make_user("alice")
    await link_discord(alice, DISCORD_ID)
    asked = []

    async def assistant(user, question):
        asked.append((user["id"], question))
        return "Do the overdue one first."

    response = await dispatch_command(
        "claude", _ctx(data, {"query": "what first?"}, assistant=assistant),
    )
    assert asked == [(alice["id"], "what first?")]
    assert "Do the overdue one first." in response["data"]["content"]


async def test_help_lists_commands(data):
    response = await dispatch_command("help", _ctx(data))
    assert response["type"] == InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE
    assert "/tasks" in response["data"]["embeds"][0]["fields"][0]["value"]
