"""Interactions Webhook — Ed25519-verified slash commands posted by Discord.

Invariants:
    - The signature is checked over the raw body before any JSON parsing
    - Verification failure → 401 "Invalid request signature", nothing dispatched
    - Command failures become ephemeral chat messages, never HTTP errors
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from taskhub.api.dependencies import get_anthropic_client, get_data_service
from taskhub.config import Settings, get_settings
from taskhub.core.constants import (
    HEADER_INTERACTION_SIGNATURE,
    HEADER_INTERACTION_TIMESTAMP,
)
from taskhub.core.errors import AuthenticationError, ValidationError
from taskhub.core.interaction_signing import verify_interaction
from taskhub.core.repository_protocols import DataService
from taskhub.infrastructure.anthropic_client import ResilientAnthropicClient
from taskhub.services.assistant import ask_assistant
from taskhub.services.discord_commands import handle_interaction

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["interactions"])


@router.post("/interactions")
async def receive_interaction(
    request: Request,
    data: DataService = Depends(get_data_service),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
    settings: Settings = Depends(get_settings),
):
    raw_body = await request.body()
    verified = verify_interaction(
        raw_body,
        request.headers.get(HEADER_INTERACTION_SIGNATURE),
        request.headers.get(HEADER_INTERACTION_TIMESTAMP),
        settings.discord_public_key,
    )
    if not verified:
        raise AuthenticationError("Invalid request signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise ValidationError("Malformed interaction body")
    if not isinstance(payload, dict):
        raise ValidationError("Malformed interaction body")

    async def assistant(user: dict, question: str) -> str:
        return await ask_assistant(
            client, data, user, question,
            model=settings.assistant_model,
            max_tokens=settings.assistant_max_tokens,
        )

    return await handle_interaction(payload, data, assistant)
