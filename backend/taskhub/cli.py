"""TaskHub CLI — operational commands run outside the API process.

Commands:
    register-commands   PUT the slash-command registry to Discord
    create-admin        bootstrap an admin account and print its API token

Design Decisions:
    - argparse subcommands; each command is an async function taking Settings
      so tests can call it directly with an httpx transport or a temp dir
"""

import argparse
import asyncio
import logging
import sys

import httpx

from taskhub.config import Settings, get_settings
from taskhub.core.domain_types import StorageBackend
from taskhub.core.errors import TaskHubError
from taskhub.infrastructure.data_service_factory import build_data_service
from taskhub.infrastructure.database import init_db
from taskhub.infrastructure.observability import setup_logging
from taskhub.services.discord_commands import COMMANDS
from taskhub.services.user_accounts import issue_api_token, register_user

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"


def commands_url(settings: Settings) -> str:
    """Guild-scoped when a guild id is configured (instant), else global."""
    base = f"{DISCORD_API_BASE}/applications/{settings.discord_application_id}"
    if settings.discord_guild_id:
        return f"{base}/guilds/{settings.discord_guild_id}/commands"
    return f"{base}/commands"


async def register_commands(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None,
) -> list[dict]:
    if not settings.discord_application_id or not settings.discord_bot_token:
        raise ValueError("DISCORD_APPLICATION_ID and DISCORD_BOT_TOKEN are required")
    async with httpx.AsyncClient(transport=transport, timeout=30) as client:
        response = await client.put(
            commands_url(settings),
            headers={"Authorization": f"Bot {settings.discord_bot_token}"},
            json=COMMANDS,
        )
    response.raise_for_status()
    registered = response.json()
    logger.info(f"Registered {len(registered)} Discord commands")
    return registered


async def create_admin(
    settings: Settings, username: str, name: str, email: str | None = None,
) -> tuple[dict, str]:
    """Create an admin user with a personal project; returns (user, api_token)."""
    if settings.storage_backend == StorageBackend.JSON:
        data = build_data_service(settings, None)
        user = await register_user(data, username, name, email=email, is_admin=True)
        return user, await issue_api_token(data, user["id"])

    manager = init_db(settings.database_url)
    try:
        if settings.database_url.startswith("sqlite"):
            await manager.create_all()
        async with manager.session() as session:
            data = build_data_service(settings, session)
            user = await register_user(data, username, name, email=email, is_admin=True)
            return user, await issue_api_token(data, user["id"])
    finally:
        await manager.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskhub")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("register-commands", help="register slash commands with Discord")

    admin = sub.add_parser("create-admin", help="create an admin user")
    admin.add_argument("--username", required=True)
    admin.add_argument("--name", required=True)
    admin.add_argument("--email")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    try:
        if args.command == "register-commands":
            registered = asyncio.run(register_commands(settings))
            for command in registered:
                print(f"/{command.get('name')}")
        elif args.command == "create-admin":
            user, token = asyncio.run(
                create_admin(settings, args.username, args.name, args.email),
            )
            print(f"Created admin {user['username']} ({user['id']})")
            print(f"API token (shown once): {token}")
    except (TaskHubError, ValueError, httpx.HTTPError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
