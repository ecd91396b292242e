"""Request Dependencies — storage injection and principal resolution.

Invariants:
    - The DataService is built per request from Settings (no global instance)
    - User routes: x-discord-user-id present -> HMAC channel, otherwise Bearer token
    - HMAC failures of any kind surface as one AuthenticationError (no reason leak)
    - Bearer tokens are looked up by SHA-256 hash only

Design Decisions:
    - get_data_service is the single override point for tests
    - Anthropic client built once per process (connection pool reuse)
"""

import logging
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends, Request

from taskhub.config import Settings, get_settings
from taskhub.core.constants import HEADER_BOT_USER_ID
from taskhub.core.domain_types import StorageBackend
from taskhub.core.errors import AuthenticationError, PermissionDeniedError
from taskhub.core.repository_protocols import DataService
from taskhub.core.request_signing import BotSignatureHeaders, verify_bot_request
from taskhub.infrastructure import database
from taskhub.infrastructure.anthropic_client import ResilientAnthropicClient
from taskhub.infrastructure.data_service_factory import build_data_service
from taskhub.services.discord_account import resolve_linked_user
from taskhub.services.user_accounts import authenticate_token

logger = logging.getLogger(__name__)


async def get_data_service(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[DataService, None]:
    if settings.storage_backend == StorageBackend.JSON:
        yield build_data_service(settings, None)
        return
    if not database.db_manager:
        raise RuntimeError("Database not initialized")
    async with database.db_manager.session() as session:
        yield build_data_service(settings, session)


@lru_cache
def _cached_anthropic_client(
    api_key: str, max_retries: int, base_delay_ms: int,
    max_delay_ms: int, timeout_seconds: int,
) -> ResilientAnthropicClient:
    return ResilientAnthropicClient(
        api_key=api_key,
        max_retries=max_retries,
        base_delay_ms=base_delay_ms,
        max_delay_ms=max_delay_ms,
        timeout_seconds=timeout_seconds,
    )


def get_anthropic_client(
    settings: Settings = Depends(get_settings),
) -> ResilientAnthropicClient:
    return _cached_anthropic_client(
        settings.anthropic_api_key,
        settings.anthropic_max_retries,
        settings.anthropic_base_delay_ms,
        settings.anthropic_max_delay_ms,
        settings.anthropic_timeout_seconds,
    )


def verified_bot_principal(request: Request, settings: Settings) -> str:
    principal = verify_bot_request(
        BotSignatureHeaders.from_mapping(request.headers),
        settings.discord_bot_secret,
    )
    if not principal:
        raise AuthenticationError("Unauthorized Discord request")
    return principal


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    data: DataService = Depends(get_data_service),
    settings: Settings = Depends(get_settings),
) -> dict:
    if request.headers.get(HEADER_BOT_USER_ID):
        principal = verified_bot_principal(request, settings)
        return await resolve_linked_user(data, principal)
    return await authenticate_token(data, _bearer_token(request))


async def get_bot_principal(
    request: Request, settings: Settings = Depends(get_settings),
) -> str:
    """Verified Discord user id (account may not be linked yet)."""
    return verified_bot_principal(request, settings)


async def get_bot_user(
    principal: str = Depends(get_bot_principal),
    data: DataService = Depends(get_data_service),
) -> dict:
    """Linked user behind a verified bot request."""
    return await resolve_linked_user(data, principal)


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if not user.get("is_admin"):
        raise PermissionDeniedError("Admin access required")
    return user
