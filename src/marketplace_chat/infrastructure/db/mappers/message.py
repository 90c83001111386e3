from __future__ import annotations

from marketplace_chat.domain.entities.message import Message
from marketplace_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        vendor_id=model.vendor_id,
        client_id=model.client_id,
        sender=model.sender,
        body=model.body,
        sent_at=model.sent_at,
        read=model.read,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        vendor_id=entity.vendor_id,
        client_id=entity.client_id,
        sender=entity.sender,
        body=entity.body,
        sent_at=entity.sent_at,
        read=entity.read,
    )
