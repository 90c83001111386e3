from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from marketplace_chat.domain.value_objects.ids import ConversationKey


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Per-viewer projection of a conversation, never persisted."""

    conversation_key: ConversationKey
    counterparty_id: str
    name: str | None
    avatar: str | None
    last_message: str
    last_message_at: datetime
    unread_count: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "conversationKey": self.conversation_key,
            "counterpartyId": self.counterparty_id,
            "name": self.name,
            "avatar": self.avatar,
            "lastMessage": self.last_message,
            "lastMessageAt": self.last_message_at.isoformat(),
            "unreadCount": self.unread_count,
        }
