"""Invitation ORM — admin-issued invitations redeemed for an account.

Invariants:
    - email is unique (one invitation row per address, resend updates it)
    - invite_token_hash is SHA-256 of the current invite token; resend rotates it
    - status transitions: pending -> accepted (terminal)
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.db.base import Base


class Invitation(Base):
    __tablename__ = "invitations"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    invited_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invite_token_hash: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    joined_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    joined_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
