"""In-process room registry: identity id -> live WebSocket connections."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import WebSocket

from marketplace_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Tracks WebSocket connections per identity room.

    Implements application.ports.emitter.EventEmitter.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = {}
        self._owners: dict[WebSocket, str] = {}

    async def connect(self, ws: WebSocket, room: str) -> None:
        await ws.accept()
        self.join(ws, room)

    def join(self, ws: WebSocket, room: str) -> None:
        self._rooms.setdefault(room, set()).add(ws)
        self._owners[ws] = room
        logger.debug("WS joined room %s (connections=%d)", room, len(self._rooms[room]))

    def disconnect(self, ws: WebSocket) -> None:
        room = self._owners.pop(ws, None)
        if room is None:
            return
        conns = self._rooms.get(room)
        if conns:
            conns.discard(ws)
            if not conns:
                del self._rooms[room]
        logger.debug("WS left room %s", room)

    def connections(self, room: str) -> set[WebSocket]:
        return set(self._rooms.get(room, ()))

    def is_online(self, room: str) -> bool:
        return bool(self._rooms.get(room))

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    async def _deliver(self, targets: Iterable[WebSocket], event: str, data: dict[str, Any]) -> int:
        raw = WsOutbound(type=event, data=data).model_dump_json()
        sent = 0
        dead: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_text(raw)
                sent += 1
            except Exception:
                dead.append(ws)
        for ws in dead:
            logger.debug("Dropping dead connection from room %s", self._owners.get(ws))
            self.disconnect(ws)
        return sent

    async def emit_to_room(self, room: str, event: str, data: dict[str, Any]) -> int:
        """Send to every connection mapped to one identity."""
        return await self._deliver(self.connections(room), event, data)

    async def emit_to_rooms(
        self,
        rooms: Iterable[str],
        event: str,
        data: dict[str, Any],
    ) -> int:
        """Send once per connection across the union of several rooms."""
        targets: set[WebSocket] = set()
        for room in rooms:
            targets |= self.connections(room)
        return await self._deliver(targets, event, data)

    async def emit_to_connection(
        self,
        connection: Any,
        event: str,
        data: dict[str, Any],
    ) -> bool:
        return await self._deliver([connection], event, data) == 1

    async def broadcast(self, event: str, data: dict[str, Any]) -> int:
        return await self._deliver(list(self._owners), event, data)
