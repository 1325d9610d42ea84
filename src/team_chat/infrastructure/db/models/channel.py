from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Index, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from team_chat.infrastructure.db.base import Base


class ChannelModel(Base):
    __tablename__ = "channels"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="public")
    # Unbounded: a percent-encoded DM key can triple the length of each ref.
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Canonical DM pair, low <= high. NULL for public channels.
    dm_user_low: Mapped[str | None] = mapped_column(String(255), nullable=True)
    dm_user_high: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )

    members = relationship("ChannelMemberModel", back_populates="channel", lazy="noload")
    messages = relationship("MessageModel", back_populates="channel", lazy="noload")

    __table_args__ = (
        CheckConstraint(
            "type <> 'dm' OR (dm_user_low IS NOT NULL AND dm_user_high IS NOT NULL)",
            name="ck_channels_dm_pair_present",
        ),
        Index(
            "uq_channels_dm_pair",
            "dm_user_low",
            "dm_user_high",
            unique=True,
            postgresql_where=text("type = 'dm'"),
        ),
        Index(
            "uq_channels_public_name",
            "name",
            unique=True,
            postgresql_where=text("type = 'public'"),
        ),
    )
