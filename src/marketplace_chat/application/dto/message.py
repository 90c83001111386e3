from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from marketplace_chat.domain.entities.message import Message
from marketplace_chat.domain.value_objects.enums import PartyRole


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    """A send-request that passed normalization."""

    vendor_id: str
    client_id: str
    sender: PartyRole
    body: str
    sent_at: datetime
    temp_id: str | None = None


def message_record(message: Message) -> dict[str, Any]:
    """Wire shape of a persisted message.

    ``text`` mirrors ``message`` for clients that still read the legacy field.
    """
    return {
        "id": str(message.id),
        "vendorId": message.vendor_id,
        "clientId": message.client_id,
        "sender": str(message.sender),
        "message": message.body,
        "text": message.body,
        "timestamp": message.sent_at.isoformat(),
        "read": message.read,
    }
