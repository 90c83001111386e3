"""Persistent socket link to the chat server with reconnects."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable
from urllib.parse import urlencode

import websockets
import websockets.exceptions

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], Awaitable[None]]
ReconnectHandler = Callable[[], Awaitable[None]]


class SocketAuthError(Exception):
    pass


class SocketLink:
    def __init__(
        self,
        url: str,
        token: str,
        *,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        open_timeout: float = 8.0,
    ) -> None:
        self._uri = f"{url}?{urlencode({'token': token})}"
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._open_timeout = open_timeout
        self._ws: Any = None
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def run(
        self,
        on_event: EventHandler,
        on_reconnect: ReconnectHandler | None = None,
    ) -> None:
        """Connect and dispatch inbound events until close() is called.

        A dropped connection is retried with backoff; every reconnect after
        the first calls ``on_reconnect`` so missed messages can be refetched.
        A rejected handshake raises SocketAuthError.
        """
        attempt = 0
        connected_before = False
        while not self._closing:
            try:
                async with websockets.connect(
                    self._uri, open_timeout=self._open_timeout,
                ) as ws:
                    self._ws = ws
                    attempt = 0
                    logger.info("Chat socket connected")
                    if connected_before and on_reconnect is not None:
                        await on_reconnect()
                    connected_before = True
                    await self._recv_loop(ws, on_event)
            except websockets.exceptions.InvalidStatus as exc:
                raise SocketAuthError(f"Handshake rejected: {exc}") from exc
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
                logger.warning("Chat socket dropped: %s", exc)
            finally:
                self._ws = None

            if self._closing:
                break
            delay = min(self._reconnect_delay * (2 ** attempt), self._max_reconnect_delay)
            attempt += 1
            await asyncio.sleep(delay)

    async def _recv_loop(self, ws: Any, on_event: EventHandler) -> None:
        try:
            async for raw in ws:
                try:
                    envelope = json.loads(raw)
                    event = envelope["type"]
                    data = envelope.get("data") or {}
                except (ValueError, KeyError, TypeError, AttributeError):
                    logger.warning("Ignoring malformed frame: %r", raw)
                    continue
                try:
                    await on_event(event, data)
                except Exception:
                    logger.exception("Handler for %s failed", event)
        except websockets.exceptions.ConnectionClosed:
            pass

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        """Send one envelope; False when there is no live connection."""
        ws = self._ws
        if ws is None:
            return False
        try:
            await ws.send(json.dumps({"type": event, "data": data}))
        except websockets.exceptions.ConnectionClosed:
            return False
        return True

    async def close(self) -> None:
        self._closing = True
        if self._ws is not None:
            await self._ws.close()
