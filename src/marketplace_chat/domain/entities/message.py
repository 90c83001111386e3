from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from marketplace_chat.domain.value_objects.enums import PartyRole
from marketplace_chat.domain.value_objects.ids import ConversationKey, conversation_key


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    vendor_id: str
    client_id: str
    sender: str
    body: str
    sent_at: datetime
    read: bool = False

    @property
    def conversation_key(self) -> ConversationKey:
        return conversation_key(self.vendor_id, self.client_id)

    @property
    def sender_id(self) -> str:
        return self.vendor_id if self.sender == PartyRole.VENDOR else self.client_id

    @property
    def recipient_id(self) -> str:
        return self.client_id if self.sender == PartyRole.VENDOR else self.vendor_id

    def party_id(self, role: PartyRole) -> str:
        return self.vendor_id if role == PartyRole.VENDOR else self.client_id


@dataclass(frozen=True, slots=True)
class ConversationHead:
    """Latest message of one conversation plus the viewer's unread count."""

    counterparty_id: str
    last_message: Message
    unread_count: int
