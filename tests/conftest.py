"""Shared test fixtures."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import pytest

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.domain.entities.message import ConversationHead, Message
from marketplace_chat.domain.entities.profile import Profile
from marketplace_chat.domain.value_objects.enums import PartyRole

VENDOR_ID = "vendor-1"
CLIENT_ID = "client-1"
BASE_TIME = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def vendor_principal() -> Principal:
    return Principal(id=VENDOR_ID, role=PartyRole.VENDOR)


@pytest.fixture
def client_principal() -> Principal:
    return Principal(id=CLIENT_ID, role=PartyRole.CLIENT)


def make_message(
    *,
    vendor_id: str = VENDOR_ID,
    client_id: str = CLIENT_ID,
    sender: str = PartyRole.CLIENT,
    body: str = "hello",
    offset_seconds: float = 0,
    read: bool = False,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        vendor_id=vendor_id,
        client_id=client_id,
        sender=str(sender),
        body=body,
        sent_at=BASE_TIME + timedelta(seconds=offset_seconds),
        read=read,
    )


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    def _conversation(self, vendor_id: str, client_id: str) -> list[Message]:
        return [m for m in self._messages if m.vendor_id == vendor_id and m.client_id == client_id]

    async def list_conversation(self, vendor_id: str, client_id: str) -> list[Message]:
        return sorted(self._conversation(vendor_id, client_id), key=lambda m: m.sent_at)

    async def count_unread(self, vendor_id: str, client_id: str, sender: str) -> int:
        return sum(
            1 for m in self._conversation(vendor_id, client_id)
            if m.sender == sender and not m.read
        )

    async def list_heads(self, party_id: str, role: str) -> list[ConversationHead]:
        viewer = PartyRole(role)
        latest: dict[str, Message] = {}
        for m in self._messages:
            if m.party_id(viewer) != party_id:
                continue
            other = m.party_id(viewer.counterpart)
            if other not in latest or m.sent_at > latest[other].sent_at:
                latest[other] = m
        heads = []
        for other, last in latest.items():
            vendor_id, client_id = last.vendor_id, last.client_id
            unread = await self.count_unread(vendor_id, client_id, viewer.counterpart.value)
            heads.append(ConversationHead(counterparty_id=other, last_message=last, unread_count=unread))
        heads.sort(key=lambda h: h.last_message.sent_at, reverse=True)
        return heads


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail_with: Exception | None = None

    async def add(self, message: Message) -> Message:
        if self.fail_with is not None:
            raise self.fail_with
        self._reader._messages.append(message)
        return message

    async def mark_read(self, vendor_id: str, client_id: str, sender: str, up_to: datetime) -> int:
        updated = 0
        for i, m in enumerate(self._reader._messages):
            if (
                m.vendor_id == vendor_id
                and m.client_id == client_id
                and m.sender == sender
                and not m.read
                and m.sent_at <= up_to
            ):
                self._reader._messages[i] = Message(
                    id=m.id,
                    vendor_id=m.vendor_id,
                    client_id=m.client_id,
                    sender=m.sender,
                    body=m.body,
                    sent_at=m.sent_at,
                    read=True,
                )
                updated += 1
        return updated


@dataclass
class FakeProfileReader:
    _profiles: dict[str, Profile] = field(default_factory=dict)

    async def get_many(self, ids: Iterable[str]) -> dict[str, Profile]:
        return {i: self._profiles[i] for i in ids if i in self._profiles}


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    profiles: FakeProfileReader = field(default_factory=FakeProfileReader)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    @property
    def stored(self) -> list[Message]:
        return self.messages._messages

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()


def with_profiles(uow: FakeUoW) -> FakeUoW:
    uow.profiles._profiles[VENDOR_ID] = Profile(
        id=VENDOR_ID, name="Aurora Catering", avatar="https://cdn.example/v.png", role="vendor",
    )
    uow.profiles._profiles[CLIENT_ID] = Profile(id=CLIENT_ID, name="Sam", avatar=None, role="client")
    return uow


@dataclass
class FakeEmitter:
    """Records emissions instead of writing to sockets."""
    sent: list[tuple[str, Any, str, dict[str, Any]]] = field(default_factory=list)
    failing_rooms: set[str] = field(default_factory=set)
    fail_broadcast: bool = False

    async def emit_to_room(self, room: str, event: str, data: dict[str, Any]) -> int:
        if room in self.failing_rooms:
            raise RuntimeError(f"room {room} unavailable")
        self.sent.append(("room", room, event, data))
        return 1

    async def emit_to_rooms(self, rooms: Iterable[str], event: str, data: dict[str, Any]) -> int:
        unique = list(dict.fromkeys(rooms))
        for room in unique:
            self.sent.append(("room", room, event, data))
        return len(unique)

    async def emit_to_connection(self, connection: Any, event: str, data: dict[str, Any]) -> bool:
        self.sent.append(("connection", connection, event, data))
        return True

    async def broadcast(self, event: str, data: dict[str, Any]) -> int:
        if self.fail_broadcast:
            raise RuntimeError("broadcast unavailable")
        self.sent.append(("all", None, event, data))
        return 1

    def events(self, event: str) -> list[tuple[str, Any, str, dict[str, Any]]]:
        return [s for s in self.sent if s[2] == event]
