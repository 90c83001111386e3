from __future__ import annotations

from typing import Protocol

from marketplace_chat.application.repositories.message import MessageReader, MessageWriter
from marketplace_chat.application.repositories.profile import ProfileReader


class UnitOfWork(Protocol):
    messages: MessageReader
    messages_w: MessageWriter
    profiles: ProfileReader

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
