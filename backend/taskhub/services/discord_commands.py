"""Discord Commands — slash-command registry, interaction dispatch and handlers.

Invariants:
    - COMMANDS is the single registry: the CLI registers it, dispatch routes by it
    - Every handler returns a complete interaction response dict
    - TaskHubError from a handler becomes an ephemeral "❌ ..." message;
      any other exception is logged and answered with a generic ephemeral error
    - Handlers call the same service functions as the REST surface, so the
      membership rule is enforced identically on both channels

Design Decisions:
    - Handlers receive a CommandContext instead of an HTTP fetcher: the
      interactions webhook runs in-process against the injected DataService
    - The assistant is optional in the context: /claude answers with an
      ephemeral notice when no Anthropic client is configured
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum

from taskhub.core.domain_types import TaskStatus
from taskhub.core.errors import TaskHubError
from taskhub.core.repository_protocols import DataService
from taskhub.services import discord_account

logger = logging.getLogger(__name__)

EPHEMERAL_FLAG = 64
COLOR_INFO = 0x4F46E5
COLOR_SUCCESS = 0x13CE66
COLOR_ALERT = 0xFF6B6B
_BLANK = "\u200b"

AssistantFn = Callable[[dict, str], Awaitable[str]]


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5


class OptionType(IntEnum):
    STRING = 3


COMMANDS: list[dict] = [
    {"name": "tasks", "description": "View your tasks", "options": []},
    {
        "name": "create",
        "description": "Create a new task",
        "options": [
            {"name": "title", "description": "Task title",
             "type": OptionType.STRING, "required": True},
            {"name": "due", "description": "Due date (YYYY-MM-DD)",
             "type": OptionType.STRING, "required": True},
            {
                "name": "priority", "description": "Priority level",
                "type": OptionType.STRING, "required": False,
                "choices": [
                    {"name": "Low", "value": "low"},
                    {"name": "Medium", "value": "medium"},
                    {"name": "High", "value": "high"},
                ],
            },
        ],
    },
    {
        "name": "complete",
        "description": "Mark a task as complete",
        "options": [
            {"name": "task", "description": "Task name or ID",
             "type": OptionType.STRING, "required": True},
        ],
    },
    {"name": "summary", "description": "Get your task summary"},
    {"name": "priorities", "description": "View high priority tasks"},
    {
        "name": "claude",
        "description": "Ask Claude about your tasks",
        "options": [
            {"name": "query", "description": "Your question",
             "type": OptionType.STRING, "required": True},
        ],
    },
    {
        "name": "link",
        "description": "Link your Discord account",
        "options": [
            {"name": "code", "description": "Link code from website settings",
             "type": OptionType.STRING, "required": True},
        ],
    },
    {"name": "help", "description": "Show available commands"},
]


@dataclass
class CommandContext:
    data: DataService
    discord_user_id: str
    discord_username: str | None = None
    options: dict = field(default_factory=dict)
    assistant: AssistantFn | None = None


# ─── Response Builders ──────────────────────────────────────────

def message_response(content: str, ephemeral: bool = False) -> dict:
    data: dict = {"content": content}
    if ephemeral:
        data["flags"] = EPHEMERAL_FLAG
    return {"type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def embed_response(embed: dict, ephemeral: bool = False) -> dict:
    data: dict = {"embeds": [embed]}
    if ephemeral:
        data["flags"] = EPHEMERAL_FLAG
    return {"type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def _embed(color: int, title: str, description: str, fields: list[dict]) -> dict:
    return {
        "color": color,
        "title": title,
        "description": description,
        "fields": fields,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _status_icon(task: dict) -> str:
    return "✅" if task["status"] == TaskStatus.COMPLETED.value else "⏳"


# ─── Handlers ───────────────────────────────────────────────────

async def handle_tasks(ctx: CommandContext) -> dict:
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    tasks = await discord_account.list_my_tasks(ctx.data, user)
    if not tasks:
        return message_response("📝 You have no tasks. Create one with `/create`!")

    pending = [t for t in tasks if t["status"] != TaskStatus.COMPLETED.value]
    completed = [t for t in tasks if t["status"] == TaskStatus.COMPLETED.value]
    fields = [
        {"name": "⏳ Pending", "value": f"**{len(pending)}** tasks"},
        {"name": "✅ Completed", "value": f"**{len(completed)}** tasks"},
        {"name": _BLANK, "value": _BLANK},
        {
            "name": "📌 Recent Tasks",
            "value": "\n".join(
                f"{_status_icon(t)} **{t['name']}**\n   Due: {t['date']}\n{_BLANK}"
                for t in tasks[:5]
            ),
        },
    ]
    return embed_response(_embed(
        COLOR_INFO, "📋 Your Tasks", f"Here's an overview of all your tasks\n{_BLANK}", fields,
    ))


async def handle_create(ctx: CommandContext) -> dict:
    title = ctx.options.get("title")
    due = ctx.options.get("due")
    if not title or not due:
        return message_response(
            "❌ Please provide task title and due date.\n"
            "Usage: `/create title:My Task due:2025-12-31 priority:high`",
            ephemeral=True,
        )
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    task = await discord_account.create_personal_task(
        ctx.data, user, title, due, ctx.options.get("priority"),
    )
    return embed_response(_embed(
        COLOR_SUCCESS, "✅ Task Created", f"Successfully created new task\n{_BLANK}",
        [
            {"name": "📝 Title", "value": task["name"]},
            {"name": "📅 Due Date", "value": task["date"]},
            {"name": "⭐ Priority", "value": task["priority"]},
        ],
    ))


async def handle_complete(ctx: CommandContext) -> dict:
    identifier = ctx.options.get("task")
    if not identifier:
        return message_response(
            "❌ Please specify a task to complete.\n"
            "Usage: `/complete task:Task Name or ID`",
            ephemeral=True,
        )
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    task = await discord_account.complete_task(ctx.data, user, identifier)
    return embed_response(_embed(
        COLOR_SUCCESS, "✅ Task Completed", f"Marked task as completed\n{_BLANK}",
        [
            {"name": "📝 Task", "value": task["name"]},
            {"name": "📅 Completed", "value": datetime.now(timezone.utc).date().isoformat()},
        ],
    ))


async def handle_summary(ctx: CommandContext) -> dict:
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    summary = await discord_account.summarize(ctx.data, user)
    fields = [
        {"name": "📋 Total Tasks", "value": str(summary["totalTasks"])},
        {"name": "⏳ Pending", "value": str(summary["pendingTasks"])},
        {"name": "✅ Completed", "value": str(summary["completedTasks"])},
    ]
    if summary["overdueTasks"] > 0:
        fields.append({"name": "⚠️ Overdue", "value": str(summary["overdueTasks"])})
    fields.append({"name": _BLANK, "value": _BLANK})
    fields.append({"name": "📁 Projects", "value": str(summary["totalProjects"])})
    return embed_response(_embed(
        COLOR_INFO, "📊 Task Summary", f"Overview of your tasks and projects\n{_BLANK}", fields,
    ))


async def handle_priorities(ctx: CommandContext) -> dict:
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    tasks = await discord_account.high_priority_tasks(ctx.data, user)
    if not tasks:
        return message_response("✅ You have no high priority tasks!")
    fields = [
        {
            "name": f"{_status_icon(t)} {t['name']}",
            "value": f"Due: {t['date']}\nPriority: {t['priority']}",
        }
        for t in tasks[:10]
    ]
    return embed_response(_embed(
        COLOR_ALERT, "⚡ High Priority Tasks",
        f"Tasks that need immediate attention\n{_BLANK}", fields,
    ))


async def handle_claude(ctx: CommandContext) -> dict:
    query = ctx.options.get("query")
    if not query:
        return message_response(
            "❌ Please provide a question.\n"
            "Usage: `/claude query:what tasks are overdue?`",
            ephemeral=True,
        )
    if ctx.assistant is None:
        return message_response("❌ The assistant is not configured.", ephemeral=True)
    user = await discord_account.resolve_linked_user(ctx.data, ctx.discord_user_id)
    answer = await ctx.assistant(user, query)
    return message_response(f"💬 **Claude says:**\n{answer}")


async def handle_link(ctx: CommandContext) -> dict:
    code = ctx.options.get("code")
    if not code:
        return message_response(
            "❌ Please provide a link code.\n"
            "Get your code from Settings on the website.\n"
            "Usage: `/link code:YOUR-CODE`",
            ephemeral=True,
        )
    user = await discord_account.redeem_link_code(
        ctx.data, ctx.discord_user_id, code, ctx.discord_username,
    )
    return embed_response(
        _embed(
            COLOR_SUCCESS, "✅ Discord Account Linked",
            f"Successfully linked to **{user['username']}**!\n"
            "You can now use all bot commands.",
            [],
        ),
        ephemeral=True,
    )


async def handle_help(ctx: CommandContext) -> dict:
    return embed_response(_embed(
        COLOR_INFO, "🤖 TaskHub Bot - Help", f"Available commands:\n{_BLANK}",
        [
            {
                "name": "📋 Task Management",
                "value": "`/tasks` - View your tasks\n`/create` - Create a new task\n"
                         "`/complete` - Mark a task as done\n`/summary` - Get task summary\n"
                         "`/priorities` - View high priority tasks",
            },
            {
                "name": "🤖 AI Assistant",
                "value": "`/claude` - Ask Claude about your tasks\n"
                         "Examples:\n• \"what tasks are overdue?\"\n• \"what should I do first?\"",
            },
            {
                "name": "🔗 Account",
                "value": "`/link` - Link your Discord account\n`/help` - Show this help message",
            },
        ],
    ))


HANDLERS: dict[str, Callable[[CommandContext], Awaitable[dict]]] = {
    "tasks": handle_tasks,
    "create": handle_create,
    "complete": handle_complete,
    "summary": handle_summary,
    "priorities": handle_priorities,
    "claude": handle_claude,
    "link": handle_link,
    "help": handle_help,
}


# ─── Dispatch ───────────────────────────────────────────────────

async def dispatch_command(name: str, ctx: CommandContext) -> dict:
    handler = HANDLERS.get(name)
    if handler is None:
        return message_response("❌ Unknown command", ephemeral=True)
    try:
        return await handler(ctx)
    except TaskHubError as e:
        logger.info(
            f"Command /{name} failed: {e.message}",
            extra={"command": name, "principal": ctx.discord_user_id, "error_code": e.code},
        )
        return message_response(e.to_chat_message(), ephemeral=True)
    except Exception as e:
        logger.error(
            f"Command /{name} crashed: {e}",
            exc_info=True,
            extra={"command": name, "principal": ctx.discord_user_id},
        )
        return message_response(
            "❌ An error occurred while processing your command.", ephemeral=True,
        )


async def handle_interaction(
    payload: dict, data: DataService, assistant: AssistantFn | None = None,
) -> dict:
    """Route a verified interaction payload to PONG or a command handler."""
    interaction_type = payload.get("type")
    if interaction_type == InteractionType.PING:
        return {"type": InteractionResponseType.PONG}
    if interaction_type != InteractionType.APPLICATION_COMMAND:
        return message_response("❌ Unsupported interaction type", ephemeral=True)

    command = payload.get("data") or {}
    discord_user = (payload.get("member") or {}).get("user") or payload.get("user") or {}
    discord_user_id = discord_user.get("id")
    if not discord_user_id:
        return message_response("❌ Could not identify Discord user", ephemeral=True)

    raw_options = command.get("options") or []
    ctx = CommandContext(
        data=data,
        discord_user_id=str(discord_user_id),
        discord_username=discord_user.get("username"),
        options={o["name"]: o.get("value") for o in raw_options if "name" in o},
        assistant=assistant,
    )
    return await dispatch_command(command.get("name", ""), ctx)
