"""Bot Request Signing — HMAC-SHA256 scheme for the bot-to-API channel.

Invariants:
    - verify_bot_request is fail-closed: returns the principal id or None, never raises
    - Signed payload is f"{principal_id}|{timestamp}" with the timestamp string as sent
    - Freshness: at most 60s old, at most 5s in the future (clock skew)
    - Signature comparison is constant-time (hmac.compare_digest on decoded bytes)
    - Callers get no distinction between failure reasons; logs carry the reason

Design Decisions:
    - now_ms injectable: freshness checks are testable without patching time
    - sign_bot_request lives beside the verifier so bot and API share one payload format
"""

import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from taskhub.core.constants import (
    HEADER_BOT_SIGNATURE,
    HEADER_BOT_TIMESTAMP,
    HEADER_BOT_USER_ID,
    HEADER_BOT_USERNAME,
    HMAC_FRESHNESS_WINDOW_MS,
    HMAC_FUTURE_TOLERANCE_MS,
    HMAC_SIGNATURE_HEX_LENGTH,
    PLACEHOLDER_SECRET,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BotSignatureHeaders:
    """Header bundle carried by every bot-channel request."""
    principal_id: str | None
    timestamp: str | None
    signature: str | None
    username: str | None = None

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "BotSignatureHeaders":
        """Extract from any header mapping (Starlette Headers are case-insensitive)."""
        return cls(
            principal_id=headers.get(HEADER_BOT_USER_ID),
            timestamp=headers.get(HEADER_BOT_TIMESTAMP),
            signature=headers.get(HEADER_BOT_SIGNATURE),
            username=headers.get(HEADER_BOT_USERNAME),
        )

    def as_headers(self) -> dict[str, str]:
        out = {
            HEADER_BOT_USER_ID: self.principal_id or "",
            HEADER_BOT_TIMESTAMP: self.timestamp or "",
            HEADER_BOT_SIGNATURE: self.signature or "",
        }
        if self.username:
            out[HEADER_BOT_USERNAME] = self.username
        return out


def current_time_ms() -> int:
    return int(time.time() * 1000)


def compute_signature(secret: str, principal_id: str, timestamp: str) -> str:
    """Hex HMAC-SHA256 over 'principal_id|timestamp'."""
    payload = f"{principal_id}|{timestamp}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def sign_bot_request(
    principal_id: str,
    secret: str,
    timestamp_ms: int | None = None,
    username: str | None = None,
) -> BotSignatureHeaders:
    """Build a signed header bundle for an outbound bot request."""
    timestamp = str(timestamp_ms if timestamp_ms is not None else current_time_ms())
    return BotSignatureHeaders(
        principal_id=principal_id,
        timestamp=timestamp,
        signature=compute_signature(secret, principal_id, timestamp),
        username=username,
    )


def verify_bot_request(
    headers: BotSignatureHeaders,
    secret: str | None,
    now_ms: int | None = None,
) -> str | None:
    """Return the verified principal id, or None if any check fails."""
    principal_id = headers.principal_id
    timestamp = headers.timestamp
    signature = headers.signature

    if not principal_id or not timestamp or not signature:
        _reject("missing_headers")
        return None

    if not secret or secret == PLACEHOLDER_SECRET:
        logger.error("Bot secret not configured or using placeholder value")
        return None

    try:
        timestamp_ms = int(timestamp)
    except ValueError:
        _reject("invalid_timestamp", principal_id)
        return None

    now = now_ms if now_ms is not None else current_time_ms()
    age = now - timestamp_ms
    if age > HMAC_FRESHNESS_WINDOW_MS:
        _reject("stale", principal_id, age_ms=age)
        return None
    if -age > HMAC_FUTURE_TOLERANCE_MS:
        _reject("future_timestamp", principal_id, age_ms=age)
        return None

    if len(signature) != HMAC_SIGNATURE_HEX_LENGTH:
        _reject("signature_length", principal_id)
        return None

    try:
        received = bytes.fromhex(signature)
    except ValueError:
        _reject("signature_not_hex", principal_id)
        return None

    expected = bytes.fromhex(compute_signature(secret, principal_id, timestamp))
    if not hmac.compare_digest(received, expected):
        _reject("signature_mismatch", principal_id)
        return None

    return principal_id


def _reject(reason: str, principal: str | None = None, age_ms: int | None = None) -> None:
    logger.info(
        f"Bot request rejected: {reason}",
        extra={"reason": reason, "principal": principal, "age_ms": age_ms},
    )
