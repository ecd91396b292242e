"""User ORM — identity, admin flag, Discord link and API token hash.

Invariants:
    - id is an opaque string primary key (never parsed)
    - username is unique; discord_user_id is unique when set
    - api_token_hash stores SHA-256 of the bearer token, never the token itself
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.db.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    initials: Mapped[str | None] = mapped_column(String(4), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    discord_user_id: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True,
    )
    discord_handle: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discord_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    api_token_hash: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
