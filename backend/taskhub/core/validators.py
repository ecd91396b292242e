"""Validators — pure field-level checks and small value helpers.

Invariants:
    - Every function is PURE: no IO, no exceptions for bad input (returns bool)
    - Length checks run on the stripped value; sanitize_string strips then truncates
    - None is accepted by validate_priority/validate_status (caller decides presence)
"""

import secrets
import time
from datetime import date, datetime, timezone

from taskhub.core.constants import (
    DISCORD_USER_ID_RE,
    EMAIL_MAX,
    EMAIL_RE,
    HEX_COLOR_RE,
    LINK_CODE_ALPHABET,
    LINK_CODE_PREFIX,
    LINK_CODE_RANDOM_LENGTH,
    PRIORITIES,
    STATUSES,
    USERNAME_MAX,
    USERNAME_MIN,
    USERNAME_RE,
)


def validate_string(value: object, min_length: int = 1, max_length: int = 500) -> bool:
    """True if value is a str whose stripped length is within [min, max]."""
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return min_length <= len(stripped) <= max_length


def validate_priority(value: object) -> bool:
    if value is None:
        return True
    return str(value).strip().lower() in PRIORITIES


def validate_status(value: object) -> bool:
    if value is None:
        return True
    return str(value).strip().lower() in STATUSES


def validate_hex_color(value: object) -> bool:
    """6-digit hex with leading '#', case-insensitive."""
    if not isinstance(value, str):
        return False
    return bool(HEX_COLOR_RE.match(value.strip()))


def validate_date(value: object) -> bool:
    """True if value parses as an ISO date or datetime ("2025-12-31", "2025-12-31T09:00:00Z")."""
    if not isinstance(value, str) or not value.strip():
        return False
    text = value.strip()
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        pass
    try:
        datetime.fromisoformat(text.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False


def validate_email(value: object) -> bool:
    if not isinstance(value, str):
        return False
    value = value.strip()
    return len(value) <= EMAIL_MAX and bool(EMAIL_RE.match(value))


def validate_username(value: object) -> bool:
    if not isinstance(value, str):
        return False
    value = value.strip()
    return USERNAME_MIN <= len(value) <= USERNAME_MAX and bool(USERNAME_RE.match(value))


def validate_discord_user_id(value: object) -> bool:
    """Discord snowflakes are 17-19 digit numbers."""
    if not isinstance(value, str):
        return False
    return bool(DISCORD_USER_ID_RE.match(value))


def sanitize_string(value: object, max_length: int = 1000) -> str:
    """Strip and truncate; non-strings become ''."""
    if not isinstance(value, str):
        return ""
    stripped = value.strip()
    return stripped[:max_length]


def normalize_optional_id(value: str | None) -> str | None:
    """Blank ids ('' or whitespace) mean 'unset'."""
    if value is None or not value.strip():
        return None
    return value


def generate_id(prefix: str) -> str:
    """prefix-<epoch ms>-<9 random base36-ish chars>."""
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{secrets.token_hex(5)[:9]}"


def generate_link_code() -> str:
    """LINK-XXXXX with uppercase alphanumerics."""
    suffix = "".join(
        secrets.choice(LINK_CODE_ALPHABET) for _ in range(LINK_CODE_RANDOM_LENGTH)
    )
    return f"{LINK_CODE_PREFIX}{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def initials_for(name: str) -> str:
    return name.strip()[:2].upper()
