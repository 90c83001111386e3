from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_chat.infrastructure.db.base import Base


class MessageModel(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    vendor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sender: Mapped[str] = mapped_column(String(20), nullable=False)
    body: Mapped[str] = mapped_column("message", Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        "timestamp",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    __table_args__ = (
        CheckConstraint("sender IN ('vendor', 'client')", name="ck_messages_sender"),
        CheckConstraint("length(message) > 0", name="ck_messages_body_not_empty"),
        Index("ix_messages_conversation_timeline", "vendor_id", "client_id", "timestamp"),
        Index("ix_messages_client_timeline", "client_id", "timestamp"),
    )
