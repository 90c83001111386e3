from __future__ import annotations

from typing import Any, Iterable, Protocol


class EventEmitter(Protocol):
    """Addressable fan-out over live connections.

    ``connection`` is whatever the transport uses to represent a single
    socket; the application layer only passes it back.
    """

    async def emit_to_room(self, room: str, event: str, data: dict[str, Any]) -> int: ...

    async def emit_to_rooms(
        self, rooms: Iterable[str], event: str, data: dict[str, Any],
    ) -> int: ...

    async def emit_to_connection(
        self, connection: Any, event: str, data: dict[str, Any],
    ) -> bool: ...

    async def broadcast(self, event: str, data: dict[str, Any]) -> int: ...
