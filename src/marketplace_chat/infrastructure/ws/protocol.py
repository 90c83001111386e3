"""Socket envelope: every frame is ``{"type": <event>, "data": {...}}``."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ServerEvent = Literal[
    "message",
    "message-sent",
    "message-error",
    "conversation-updated",
    "chat-event",
    "new-booking",
    "booking-updated",
    "pong",
    "error",
]


class WsInbound(BaseModel):
    """Client → Server. Unknown types are answered with an error frame, not rejected here."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class WsOutbound(BaseModel):
    """Server → Client."""

    type: ServerEvent
    data: dict[str, Any] = Field(default_factory=dict)
