from __future__ import annotations

from datetime import datetime
from typing import Protocol

from marketplace_chat.domain.entities.message import ConversationHead, Message


class MessageReader(Protocol):
    async def list_conversation(self, vendor_id: str, client_id: str) -> list[Message]:
        """All messages of the conversation, oldest first."""
        ...

    async def count_unread(self, vendor_id: str, client_id: str, sender: str) -> int: ...

    async def list_heads(self, party_id: str, role: str) -> list[ConversationHead]:
        """Latest message and unread count per counterparty, newest first."""
        ...


class MessageWriter(Protocol):
    async def add(self, message: Message) -> Message: ...

    async def mark_read(
        self,
        vendor_id: str,
        client_id: str,
        sender: str,
        up_to: datetime,
    ) -> int:
        """Flip read on unread messages from sender sent at or before up_to. Return count."""
        ...
