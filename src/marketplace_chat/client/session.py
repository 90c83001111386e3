from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Coroutine

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.events import (
    CHAT_EVENT,
    CONVERSATION_UPDATED,
    ERROR,
    MESSAGE,
    MESSAGE_ERROR,
    MESSAGE_SENT,
    SEND_MESSAGE,
)
from marketplace_chat.application.ports.clock import Clock, SystemClock
from marketplace_chat.client.api import ChatApi, ChatApiError
from marketplace_chat.client.socket import SocketLink
from marketplace_chat.client.state import ConversationView, MessageEntry
from marketplace_chat.client.summaries import ConversationList
from marketplace_chat.config import settings

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Awaitable[None]]


class ChatSession:
    """Binds the conversation view and the active-chat list to the server.

    Socket events are applied through ``handle_event``; history and
    mark-read go over HTTP.
    """

    def __init__(
        self,
        principal: Principal,
        api: ChatApi,
        link: SocketLink,
        *,
        clock: Clock | None = None,
        window_seconds: float | None = None,
    ) -> None:
        if window_seconds is None:
            window_seconds = settings.RECONCILE_WINDOW_SECONDS
        self.principal = principal
        self.api = api
        self.link = link
        self.view = ConversationView(principal, window_seconds=window_seconds)
        self.conversations = ConversationList()
        self._clock = clock or SystemClock()
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    async def run(self) -> None:
        await self.link.run(self.handle_event, on_reconnect=self.resync)

    # -- conversations ----------------------------------------------------

    async def load_active(self) -> None:
        self.conversations.load(await self.api.list_active())

    async def open(self, counterparty_id: str) -> bool:
        """Show one conversation: fetch history, then mark it read in the background."""
        self.conversations.mark_opened(counterparty_id)
        ticket = self.view.begin_open(counterparty_id)
        try:
            records = await self.api.fetch_history(counterparty_id)
        except ChatApiError as exc:
            logger.warning("History for %s unavailable: %s", counterparty_id, exc.detail)
            self.view.fail_open(ticket, exc.detail)
            return False
        if not self.view.finish_open(ticket, records):
            return False
        self._spawn(self._mark_read(counterparty_id))
        return True

    def close(self) -> None:
        self.view.close()
        self.conversations.mark_closed()

    async def resync(self) -> None:
        """Refetch what may have been missed while the socket was down."""
        try:
            await self.load_active()
        except ChatApiError as exc:
            logger.warning("Active chats unavailable after reconnect: %s", exc.detail)
        if self.view.counterparty_id is not None:
            await self.open(self.view.counterparty_id)

    async def _mark_read(self, counterparty_id: str) -> None:
        try:
            await self.api.mark_read(counterparty_id)
        except Exception:
            logger.exception("mark-read for %s failed", counterparty_id)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for background work such as pending mark-read calls."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -- sending ----------------------------------------------------------

    async def send(self, text: str | None = None) -> MessageEntry | None:
        if text is not None:
            self.view.draft = text
        entry = self.view.submit(self._clock.now())
        if entry is None:
            return None
        payload = {
            "vendorId": entry.vendor_id,
            "clientId": entry.client_id,
            "sender": entry.sender,
            "message": entry.body,
            "timestamp": entry.sent_at.isoformat(),
            "tempId": entry.temp_id,
        }
        if not await self.link.send(SEND_MESSAGE, payload):
            # stays optimistic until a reconnect refetch settles it
            logger.warning("Socket down, message %s not sent", entry.temp_id)
        return entry

    # -- inbound ----------------------------------------------------------

    async def handle_event(self, event: str, data: dict[str, Any]) -> None:
        if event == MESSAGE:
            self._apply_incoming(data)
        elif event == MESSAGE_SENT:
            self.view.confirm(data, temp_id=data.get("tempId"))
        elif event == MESSAGE_ERROR:
            error = str(data.get("error") or "Message could not be sent")
            temp_id = data.get("tempId")
            self.view.fail_pending(error, None if temp_id is None else str(temp_id))
            logger.info("Send rejected: %s", error)
        elif event == CONVERSATION_UPDATED:
            self.conversations.apply_update(data)
        elif event == CHAT_EVENT:
            # the global feed also covers the open conversation; ids dedupe it
            if isinstance(data.get("message"), dict):
                self._apply_incoming(data["message"])
        elif event == ERROR:
            logger.warning("Server reported a protocol error: %s", data)

        for listener in list(self._listeners.get(event, ())):
            await listener(data)

    def _apply_incoming(self, record: dict[str, Any]) -> None:
        if self.view.confirm(record) and record.get("sender") != self.principal.role.value:
            # arrived while the conversation is on screen
            self._spawn(self._mark_read(self.view.counterparty_id or ""))
