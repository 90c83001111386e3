from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MessageResponse(BaseModel):
    """Persisted message as exchanged over HTTP and the socket."""

    id: UUID
    vendor_id: str
    client_id: str
    sender: str
    body: str = Field(alias="message")
    sent_at: datetime = Field(alias="timestamp")
    read: bool = False

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class MarkReadResponse(BaseModel):
    updated: int
