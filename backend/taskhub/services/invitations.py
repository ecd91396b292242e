"""Invitations — admin-issued invite tokens redeemed through accept_invitation.

Invariants:
    - One invitation per normalized (lowercase, stripped) email
    - Sending or resending rotates the invite token; only its hash is stored
    - No invitation for an email that already belongs to a user
"""

import logging
import secrets

from taskhub.core.domain_types import ActivityAction, InvitationStatus
from taskhub.core.errors import ConflictError, ResourceNotFoundError, ValidationError
from taskhub.core.repository_protocols import DataService
from taskhub.core.validators import utc_now, validate_email
from taskhub.services.activity import record_activity
from taskhub.services.user_accounts import hash_token

logger = logging.getLogger(__name__)


def _normalize(email: str | None) -> str:
    if not isinstance(email, str) or not validate_email(email):
        raise ValidationError("Valid email is required", field="email")
    return email.strip().lower()


async def send_invitation(
    data: DataService, admin_id: str, email: str,
) -> tuple[dict, str]:
    """Create or refresh an invitation; returns (invitation, invite_token)."""
    email = _normalize(email)
    if await data.get_user_by_email(email):
        raise ConflictError("User with this email already exists")

    token = secrets.token_urlsafe(24)
    now = utc_now()
    existing = await data.get_invitation(email)
    record = {
        "email": email,
        "invite_token_hash": hash_token(token),
        "status": InvitationStatus.PENDING.value,
        "sent_at": now,
    }
    if not existing:
        record.update(invited_by_user_id=admin_id, invited_at=now)
    await data.save_invitation(record)
    await record_activity(
        data, admin_id, ActivityAction.INVITATION_SENT, f"Invitation sent to {email}",
    )
    logger.info("Invitation sent", extra={"principal": admin_id})
    return await data.get_invitation(email), token


async def resend_invitation(
    data: DataService, admin_id: str, email: str,
) -> tuple[dict, str]:
    email = _normalize(email)
    invitation = await data.get_invitation(email)
    if not invitation:
        raise ResourceNotFoundError("Invitation", email, "Invitation not found")
    if invitation["status"] == InvitationStatus.ACCEPTED.value:
        raise ConflictError("User has already accepted this invitation")

    existing_user = await data.get_user_by_email(email)
    if existing_user:
        await data.save_invitation({
            "email": email,
            "status": InvitationStatus.ACCEPTED.value,
            "joined_at": existing_user["created_at"],
            "joined_user_id": existing_user["id"],
            "invite_token_hash": None,
        })
        raise ConflictError("User has already registered")

    token = secrets.token_urlsafe(24)
    await data.save_invitation({
        "email": email,
        "invite_token_hash": hash_token(token),
        "status": InvitationStatus.PENDING.value,
        "sent_at": utc_now(),
    })
    await record_activity(
        data, admin_id, ActivityAction.INVITATION_RESENT, f"Invitation resent to {email}",
    )
    return await data.get_invitation(email), token


async def list_invitations(data: DataService) -> list[dict]:
    """Invitations newest first, joined with the redeeming user's name."""
    result = []
    for invitation in await data.list_invitations():
        entry = {k: v for k, v in invitation.items() if k != "invite_token_hash"}
        joined = None
        if invitation.get("joined_user_id"):
            joined = await data.get_user_by_id(invitation["joined_user_id"])
        entry["user_name"] = joined["name"] if joined else None
        entry["username"] = joined["username"] if joined else None
        result.append(entry)
    return result


async def list_users_with_task_counts(data: DataService) -> list[dict]:
    users = []
    for user in await data.list_users():
        assigned = await data.list_assigned_tasks(user["id"])
        entry = {k: v for k, v in user.items() if k != "api_token_hash"}
        entry["task_count"] = len(assigned)
        users.append(entry)
    users.sort(key=lambda u: u.get("created_at") or "", reverse=True)
    return users
