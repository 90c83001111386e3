from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ConversationSummaryResponse(BaseModel):
    conversation_key: str
    counterparty_id: str
    name: str | None
    avatar: str | None
    last_message: str
    last_message_at: datetime
    unread_count: int

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
