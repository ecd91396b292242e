"""CLI — slash-command registration and admin bootstrap."""

import json

import httpx
import pytest

from taskhub.cli import build_parser, commands_url, create_admin, main, register_commands
from taskhub.config import Settings
from taskhub.infrastructure.json_data_service import JsonFileDataService
from taskhub.services.discord_commands import COMMANDS
from taskhub.services.user_accounts import authenticate_token


def _settings(**overrides) -> Settings:
    base = {
        "discord_application_id": "app-1",
        "discord_bot_token": "bot-token",
        "discord_guild_id": "",
    }
    base.update(overrides)
    return Settings(**base)


def test_commands_url_global_and_guild():
    assert commands_url(_settings()) == (
        "https://discord.com/api/v10/applications/app-1/commands"
    )
    assert commands_url(_settings(discord_guild_id="g-9")) == (
        "https://discord.com/api/v10/applications/app-1/guilds/g-9/commands"
    )


async def test_register_commands_puts_registry():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=seen["body"])

    registered = await register_commands(_settings(), transport=httpx.MockTransport(handler))
    assert seen["method"] == "PUT"
    assert seen["auth"] == "Bot bot-token"
    assert [c["name"] for c in seen["body"]] == [c["name"] for c in COMMANDS]
    assert len(registered) == len(COMMANDS)


async def test_register_commands_requires_credentials():
    with pytest.raises(ValueError):
        await register_commands(_settings(discord_bot_token=""))


async def test_register_commands_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={}))
    with pytest.raises(httpx.HTTPStatusError):
        await register_commands(_settings(), transport=transport)


async def test_create_admin_json_backend(tmp_path):
    settings = _settings(storage_backend="json", json_data_dir=str(tmp_path))
    user, token = await create_admin(settings, "root", "Root Admin", "root@example.com")
    assert user["is_admin"] is True

    data = JsonFileDataService(str(tmp_path))
    assert (await authenticate_token(data, token))["id"] == user["id"]
    assert await data.get_personal_project(user["id"])


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_main_reports_missing_credentials(capsys):
    assert main(["register-commands"]) == 1
    assert "DISCORD_APPLICATION_ID" in capsys.readouterr().err
