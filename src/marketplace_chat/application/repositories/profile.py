from __future__ import annotations

from typing import Iterable, Protocol

from marketplace_chat.domain.entities.profile import Profile


class ProfileReader(Protocol):
    async def get_many(self, ids: Iterable[str]) -> dict[str, Profile]: ...
