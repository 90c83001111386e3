from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from marketplace_chat.api.v1.schemas.conversation import ConversationSummaryResponse
from marketplace_chat.application.ports.clock import as_utc


@dataclass(slots=True)
class ConversationItem:
    conversation_key: str
    counterparty_id: str
    name: str | None
    avatar: str | None
    last_message: str
    last_message_at: datetime
    unread_count: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ConversationItem:
        parsed = ConversationSummaryResponse.model_validate(dict(payload))
        return cls(
            conversation_key=parsed.conversation_key,
            counterparty_id=parsed.counterparty_id,
            name=parsed.name,
            avatar=parsed.avatar,
            last_message=parsed.last_message,
            last_message_at=as_utc(parsed.last_message_at),
            unread_count=max(parsed.unread_count, 0),
        )


class ConversationList:
    """Active-chat list of one viewer, keyed by counterparty.

    Unread counts coming from the server are absolute. While a conversation
    is open on screen its count is held at 0; the session issues the
    matching mark-read.
    """

    def __init__(self) -> None:
        self._items: dict[str, ConversationItem] = {}
        self.open_counterparty: str | None = None

    def load(self, payloads: Iterable[Mapping[str, Any]]) -> None:
        self._items = {}
        for payload in payloads:
            self.apply_update(payload)

    def apply_update(self, payload: Mapping[str, Any]) -> ConversationItem:
        item = ConversationItem.from_payload(payload)
        current = self._items.get(item.counterparty_id)
        if current is not None and item.last_message_at < current.last_message_at:
            # late update for an older message; only the count is newer
            current.unread_count = item.unread_count
            item = current
        if item.counterparty_id == self.open_counterparty:
            item.unread_count = 0
        self._items[item.counterparty_id] = item
        return item

    def mark_opened(self, counterparty_id: str) -> None:
        self.open_counterparty = counterparty_id
        item = self._items.get(counterparty_id)
        if item is not None:
            item.unread_count = 0

    def mark_closed(self) -> None:
        self.open_counterparty = None

    def get(self, counterparty_id: str) -> ConversationItem | None:
        return self._items.get(counterparty_id)

    @property
    def items(self) -> list[ConversationItem]:
        return sorted(self._items.values(), key=lambda i: i.last_message_at, reverse=True)

    @property
    def total_unread(self) -> int:
        return sum(i.unread_count for i in self._items.values())

    def __len__(self) -> int:
        return len(self._items)
