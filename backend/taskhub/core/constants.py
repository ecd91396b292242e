"""Constants — field limits, enumerations, palette and security windows.

Invariants:
    - Single source of truth for every limit used by validators and verifiers
    - Values are plain module-level constants (no config override); tunables
      that differ per deployment live in config.Settings instead
"""

import re

from taskhub.core.domain_types import TaskPriority, TaskStatus


# ─── Field Limits ────────────────────────────────────────────────

TASK_NAME_MIN: int = 1
TASK_NAME_MAX: int = 200
TASK_DESCRIPTION_MAX: int = 2000

PROJECT_NAME_MIN: int = 1
PROJECT_NAME_MAX: int = 100
PROJECT_DESCRIPTION_MAX: int = 1000

USERNAME_MIN: int = 3
USERNAME_MAX: int = 30
USER_NAME_MAX: int = 100
EMAIL_MAX: int = 255


# ─── Allowed Values ──────────────────────────────────────────────

PRIORITIES: tuple[str, ...] = tuple(p.value for p in TaskPriority)
STATUSES: tuple[str, ...] = tuple(s.value for s in TaskStatus)


# ─── Patterns ────────────────────────────────────────────────────

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{6})$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
DISCORD_USER_ID_RE = re.compile(r"^\d{17,19}$")


# ─── Project Palette ─────────────────────────────────────────────

PROJECT_COLORS: tuple[str, ...] = (
    "#f06a6a",  # red
    "#ffc82c",  # yellow
    "#13ce66",  # green
    "#667eea",  # purple
    "#764ba2",  # dark purple
    "#f093fb",  # pink
    "#4facfe",  # blue
    "#43e97b",  # light green
)
PERSONAL_PROJECT_COLOR: str = "#667eea"
PERSONAL_PROJECT_DESCRIPTION: str = "Personal tasks and notes"


# ─── Bot Channel (HMAC) ──────────────────────────────────────────

HMAC_FRESHNESS_WINDOW_MS: int = 60_000
HMAC_FUTURE_TOLERANCE_MS: int = 5_000
HMAC_SIGNATURE_HEX_LENGTH: int = 64
PLACEHOLDER_SECRET: str = "your-secret-here"

HEADER_BOT_USER_ID: str = "x-discord-user-id"
HEADER_BOT_TIMESTAMP: str = "x-discord-timestamp"
HEADER_BOT_SIGNATURE: str = "x-discord-signature"
HEADER_BOT_USERNAME: str = "x-discord-username"


# ─── Interactions Channel (Ed25519) ──────────────────────────────

HEADER_INTERACTION_SIGNATURE: str = "x-signature-ed25519"
HEADER_INTERACTION_TIMESTAMP: str = "x-signature-timestamp"


# ─── Ids & Codes ─────────────────────────────────────────────────

PREFIX_USER: str = "user"
PREFIX_PROJECT: str = "proj"
PREFIX_TASK: str = "task"
PREFIX_ACTIVITY: str = "activity"

LINK_CODE_PREFIX: str = "LINK-"
LINK_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
LINK_CODE_RANDOM_LENGTH: int = 5
LINK_CODE_MAX_ATTEMPTS: int = 10


# ─── Activity Log ────────────────────────────────────────────────

MAX_ACTIVITY_ITEMS: int = 100
JSON_ACTIVITY_RETENTION: int = 500
