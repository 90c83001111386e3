from __future__ import annotations

from enum import StrEnum


class PartyRole(StrEnum):
    VENDOR = "vendor"
    CLIENT = "client"

    @property
    def counterpart(self) -> PartyRole:
        return PartyRole.CLIENT if self is PartyRole.VENDOR else PartyRole.VENDOR


class ViewState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
