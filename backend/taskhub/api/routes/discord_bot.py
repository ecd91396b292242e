"""Discord Bot Channel — HMAC-signed endpoints called by the gateway bot.

Invariants:
    - Every route requires a valid x-discord-* signature (401 otherwise)
    - Every route except /link requires the Discord account to be linked
    - Successful responses are wrapped as {"data": ...}
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from taskhub.api.dependencies import (
    get_anthropic_client,
    get_bot_principal,
    get_bot_user,
    get_data_service,
)
from taskhub.config import Settings, get_settings
from taskhub.core.constants import HEADER_BOT_USERNAME
from taskhub.core.repository_protocols import DataService
from taskhub.infrastructure.anthropic_client import ResilientAnthropicClient
from taskhub.schemas.discord import (
    AssistantQuery, BotEnvelope, BotTaskCreate, LinkRequest,
)
from taskhub.services import discord_account
from taskhub.services.assistant import ask_assistant
from taskhub.services.user_accounts import public_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/discord", tags=["discord-bot"])


@router.get("/tasks", response_model=BotEnvelope)
async def list_tasks(
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
):
    return {"data": await discord_account.list_my_tasks(data, user)}


@router.post(
    "/tasks", response_model=BotEnvelope, status_code=status.HTTP_201_CREATED,
)
async def create_task(
    body: BotTaskCreate,
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
):
    task = await discord_account.create_personal_task(
        data, user, body.name, body.date, body.priority,
    )
    return {"data": task}


@router.put("/tasks/{identifier}/complete", response_model=BotEnvelope)
async def complete_task(
    identifier: str,
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
):
    """Identifier is a task id or a fragment of an open task's name."""
    return {"data": await discord_account.complete_task(data, user, identifier)}


@router.get("/summary", response_model=BotEnvelope)
async def summary(
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
):
    return {"data": await discord_account.summarize(data, user)}


@router.get("/priorities", response_model=BotEnvelope)
async def priorities(
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
):
    return {"data": await discord_account.high_priority_tasks(data, user)}


@router.post("/link", response_model=BotEnvelope)
async def link_account(
    body: LinkRequest,
    request: Request,
    principal: str = Depends(get_bot_principal),
    data: DataService = Depends(get_data_service),
):
    user = await discord_account.redeem_link_code(
        data, principal, body.code, request.headers.get(HEADER_BOT_USERNAME),
    )
    logger.info("Discord account linked", extra={"user_id": user["id"], "principal": principal})
    return {"data": public_user(user)}


@router.post("/assistant", response_model=BotEnvelope)
async def ask(
    body: AssistantQuery,
    user: dict = Depends(get_bot_user),
    data: DataService = Depends(get_data_service),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
    settings: Settings = Depends(get_settings),
):
    answer = await ask_assistant(
        client, data, user, body.query,
        model=settings.assistant_model, max_tokens=settings.assistant_max_tokens,
    )
    return {"data": {"answer": answer}}
