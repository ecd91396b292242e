"""User Accounts — registration, API tokens, profile updates and account removal.

Invariants:
    - API tokens are shown once; only their SHA-256 hex digest is stored
    - Every registered user gets exactly one personal project "<username>-Personal"
    - Usernames are unique (case-insensitive, stored lowercase)
    - public_user() is the only shape that leaves the service (no token hash)
"""

import hashlib
import logging
import secrets

from taskhub.core.constants import (
    PERSONAL_PROJECT_COLOR,
    PERSONAL_PROJECT_DESCRIPTION,
    PREFIX_PROJECT,
    PREFIX_USER,
    USER_NAME_MAX,
)
from taskhub.core.domain_types import ActivityAction, InvitationStatus
from taskhub.core.errors import (
    AuthenticationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from taskhub.core.repository_protocols import DataService
from taskhub.core.validators import (
    generate_id,
    initials_for,
    sanitize_string,
    utc_now,
    validate_email,
    validate_hex_color,
    validate_string,
    validate_username,
)
from taskhub.services.activity import record_activity

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def public_user(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "api_token_hash"}


async def issue_api_token(data: DataService, user_id: str) -> str:
    """Rotate the user's bearer token; the previous one stops working."""
    token = secrets.token_urlsafe(32)
    await data.update_user(
        user_id, {"api_token_hash": hash_token(token), "updated_at": utc_now()},
    )
    return token


async def authenticate_token(data: DataService, token: str | None) -> dict:
    if not token:
        raise AuthenticationError()
    user = await data.get_user_by_token_hash(hash_token(token))
    if not user:
        raise AuthenticationError("Invalid or expired token")
    return user


async def register_user(
    data: DataService,
    username: str,
    name: str,
    email: str | None = None,
    is_admin: bool = False,
) -> dict:
    """Create the user and their personal project."""
    if not validate_username(username):
        raise ValidationError(
            "Username must be 3-30 characters: letters, numbers, underscores",
            field="username",
        )
    if not validate_string(name, 1, USER_NAME_MAX):
        raise ValidationError(f"Name must be 1-{USER_NAME_MAX} characters", field="name")
    if email is not None and not validate_email(email):
        raise ValidationError("Valid email is required", field="email")

    username = username.strip().lower()
    if await data.get_user_by_username(username):
        raise ConflictError("Username is already taken")
    if email:
        email = email.strip().lower()
        if await data.get_user_by_email(email):
            raise ConflictError("User with this email already exists")

    now = utc_now()
    clean_name = sanitize_string(name, USER_NAME_MAX)
    user = await data.create_user({
        "id": generate_id(PREFIX_USER),
        "username": username,
        "name": clean_name,
        "email": email,
        "initials": initials_for(clean_name),
        "is_admin": is_admin,
        "created_at": now,
        "updated_at": now,
    })
    await record_activity(
        data, user["id"], ActivityAction.USER_CREATED, f"User {clean_name} created",
    )

    personal = await data.create_project({
        "id": generate_id(PREFIX_PROJECT),
        "name": f"{username}-Personal",
        "description": PERSONAL_PROJECT_DESCRIPTION,
        "color": PERSONAL_PROJECT_COLOR,
        "owner_id": user["id"],
        "is_personal": True,
        "created_at": now,
        "updated_at": now,
    })
    await record_activity(
        data, user["id"], ActivityAction.PROJECT_CREATED,
        "Personal project created", project_id=personal["id"],
    )
    logger.info("User registered", extra={"user_id": user["id"]})
    return user


async def accept_invitation(
    data: DataService, invite_token: str, username: str, name: str,
) -> tuple[dict, str]:
    """Redeem an invite token; returns (user, api_token)."""
    invitation = None
    if invite_token:
        invitation = await data.get_invitation_by_token_hash(hash_token(invite_token))
    if not invitation:
        raise AuthenticationError("Invalid invitation token")
    if invitation["status"] == InvitationStatus.ACCEPTED.value:
        raise ConflictError("This invitation has already been accepted")

    user = await register_user(data, username, name, email=invitation["email"])
    await data.save_invitation({
        "email": invitation["email"],
        "status": InvitationStatus.ACCEPTED.value,
        "joined_at": utc_now(),
        "joined_user_id": user["id"],
        "invite_token_hash": None,
    })
    token = await issue_api_token(data, user["id"])
    refreshed = await data.get_user_by_id(user["id"])
    return refreshed, token


async def get_user(data: DataService, user_id: str) -> dict:
    user = await data.get_user_by_id(user_id)
    if not user:
        raise ResourceNotFoundError("User", user_id, "User not found")
    return user


async def list_users(data: DataService) -> list[dict]:
    return [public_user(u) for u in await data.list_users()]


async def update_profile(data: DataService, user_id: str, updates: dict) -> dict:
    """Partial profile update: name, initials, username, color."""
    changes: dict = {}
    name = updates.get("name")
    if name is not None:
        if not validate_string(name, 1, USER_NAME_MAX):
            raise ValidationError(
                f"Name must be 1-{USER_NAME_MAX} characters", field="name",
            )
        changes["name"] = name.strip()
    initials = updates.get("initials")
    if initials and initials.strip():
        changes["initials"] = initials.strip()[:2].upper()
    username = updates.get("username")
    if isinstance(username, str) and username.strip():
        if not validate_username(username):
            raise ValidationError(
                "Username must be 3-30 characters: letters, numbers, underscores",
                field="username",
            )
        username = username.strip().lower()
        existing = await data.get_user_by_username(username)
        if existing and existing["id"] != user_id:
            raise ConflictError("Username is already taken")
        changes["username"] = username
    color = updates.get("color")
    if isinstance(color, str) and color.strip():
        if not validate_hex_color(color):
            raise ValidationError("Invalid color. Use 6-digit hex like #f06a6a", field="color")
        changes["color"] = color.strip().lower()

    if not changes:
        raise ValidationError("No valid fields to update")

    changes["updated_at"] = utc_now()
    await data.update_user(user_id, changes)
    await record_activity(
        data, user_id, ActivityAction.USER_UPDATED, "User profile updated",
    )
    return await get_user(data, user_id)


async def delete_user_account(data: DataService, admin_id: str, user_id: str) -> dict:
    """Admin removal: unassigns tasks, drops owned projects and memberships."""
    user = await get_user(data, user_id)
    if user["id"] == admin_id:
        raise ValidationError("Cannot delete your own account")
    await data.delete_user(user_id)
    logger.warning(
        "User deleted by admin", extra={"user_id": user_id, "principal": admin_id},
    )
    await record_activity(
        data, admin_id, ActivityAction.USER_DELETED,
        f"Deleted user: {user['username']} ({user.get('email')})",
    )
    return public_user(user)
