"""Bot API Client — httpx client the gateway bot uses to call the bot channel.

Invariants:
    - Every request carries freshly signed HMAC headers (new timestamp per call)
    - Non-2xx responses raise BotApiError carrying the server's message and status
    - The shared secret never leaves this process except as an HMAC
"""

import logging
from urllib.parse import quote

import httpx

from taskhub.core.errors import ErrorCategory, ErrorSeverity, TaskHubError
from taskhub.core.request_signing import sign_bot_request

logger = logging.getLogger(__name__)

_BOT_PREFIX = "/api/v1/discord"


class BotApiError(TaskHubError):
    """The API rejected or failed a bot-channel call."""

    type_tag = "BotApiError"

    def __init__(self, message: str, http_status: int):
        super().__init__(
            message, "BOT_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, None, http_status,
        )


class BotApiClient:
    """Signed calls to /api/v1/discord/* on behalf of a Discord user."""

    def __init__(
        self,
        base_url: str,
        secret: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret = secret
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "BotApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        discord_user_id: str,
        username: str | None = None,
        json: dict | None = None,
    ):
        headers = sign_bot_request(
            discord_user_id, self.secret, username=username,
        ).as_headers()
        response = await self._client.request(
            method, f"{_BOT_PREFIX}{path}", headers=headers, json=json,
        )
        if response.is_success:
            return response.json().get("data")

        message = f"Request failed with status {response.status_code}"
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            pass
        logger.warning(
            f"Bot API call failed: {method} {path} -> {response.status_code}",
            extra={"principal": discord_user_id, "path": path},
        )
        raise BotApiError(message, response.status_code)

    async def list_tasks(self, discord_user_id: str) -> list[dict]:
        return await self._request("GET", "/tasks", discord_user_id)

    async def create_task(
        self, discord_user_id: str, name: str, date: str, priority: str | None = None,
    ) -> dict:
        return await self._request(
            "POST", "/tasks", discord_user_id,
            json={"name": name, "date": date, "priority": priority or "none"},
        )

    async def complete_task(self, discord_user_id: str, identifier: str) -> dict:
        return await self._request(
            "PUT", f"/tasks/{quote(identifier, safe='')}/complete", discord_user_id,
        )

    async def summary(self, discord_user_id: str) -> dict:
        return await self._request("GET", "/summary", discord_user_id)

    async def priorities(self, discord_user_id: str) -> list[dict]:
        return await self._request("GET", "/priorities", discord_user_id)

    async def link(self, discord_user_id: str, code: str, username: str | None) -> dict:
        return await self._request(
            "POST", "/link", discord_user_id, username=username, json={"code": code},
        )

    async def ask(self, discord_user_id: str, query: str) -> dict:
        return await self._request(
            "POST", "/assistant", discord_user_id, json={"query": query},
        )
