"""Task Assistant — answers questions about the caller's tasks via Claude.

Invariants:
    - Context only includes tasks and projects the caller can access
    - The model never mutates anything: the answer is plain text
    - Answers are capped at MAX_ANSWER_CHARS (Discord message limit headroom)
"""

import json
import logging

from taskhub.core.domain_types import TaskStatus
from taskhub.core.errors import ErrorContext, ValidationError
from taskhub.core.repository_protocols import DataService
from taskhub.core.validators import utc_now
from taskhub.infrastructure.anthropic_client import ResilientAnthropicClient

logger = logging.getLogger(__name__)

MAX_QUESTION_CHARS = 1000
MAX_ANSWER_CHARS = 1900

_SYSTEM_PROMPT = """You are a helpful task management assistant. You help users understand and organize their tasks.

Current task data:
{context}

Provide concise, actionable responses. When suggesting priorities, consider:
- Overdue tasks (highest priority)
- Due dates (sooner = higher priority)
- Task status (in-progress before pending)
- Project context

Format your responses clearly with bullet points or numbered lists when appropriate."""


async def build_task_context(data: DataService, user: dict) -> dict:
    tasks = await data.list_tasks_for_user(user["id"])
    projects = {p["id"]: p for p in await data.list_projects_for_user(user["id"])}
    users = {u["id"]: u for u in await data.list_users()}
    today = utc_now().date().isoformat()

    def overdue(task: dict) -> bool:
        return task["date"][:10] < today and task["status"] != TaskStatus.COMPLETED.value

    return {
        "today": today,
        "tasks": [
            {
                "name": t["name"],
                "description": t.get("description") or "",
                "status": t["status"],
                "priority": t["priority"],
                "dueDate": t["date"],
                "project": projects.get(t["project_id"], {}).get("name", "Unknown"),
                "assignedTo": users.get(t.get("assigned_to_id"), {}).get("name", "Unassigned"),
                "isOverdue": overdue(t),
            }
            for t in tasks
        ],
        "summary": {
            "totalTasks": len(tasks),
            "completed": sum(1 for t in tasks if t["status"] == TaskStatus.COMPLETED.value),
            "pending": sum(1 for t in tasks if t["status"] == TaskStatus.PENDING.value),
            "inProgress": sum(
                1 for t in tasks if t["status"] == TaskStatus.IN_PROGRESS.value
            ),
            "overdue": sum(1 for t in tasks if overdue(t)),
            "totalProjects": len(projects),
        },
    }


async def ask_assistant(
    client: ResilientAnthropicClient,
    data: DataService,
    user: dict,
    question: str | None,
    model: str,
    max_tokens: int,
) -> str:
    if not question or not question.strip():
        raise ValidationError("Please provide a question", field="query")
    question = question.strip()[:MAX_QUESTION_CHARS]

    context = await build_task_context(data, user)
    text = await client.ask_text(
        model=model,
        max_tokens=max_tokens,
        system=_SYSTEM_PROMPT.format(context=json.dumps(context, indent=2)),
        question=question,
        context=ErrorContext(user_id=user["id"]),
    )
    if len(text) > MAX_ANSWER_CHARS:
        text = text[: MAX_ANSWER_CHARS - 3] + "..."
    return text or "I don't have an answer for that."
