from __future__ import annotations

import logging
import uuid

from marketplace_chat.application.dto.message import SendMessageDTO
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.policies.permissions import assert_counterparty
from marketplace_chat.application.uow import UnitOfWork
from marketplace_chat.domain.entities.message import Message

logger = logging.getLogger(__name__)


async def send_message(request: SendMessageDTO, uow: UnitOfWork) -> Message:
    """Persist one message from a normalized send-request.

    Raises PersistenceError if the store rejects the write; nothing is
    committed in that case.
    """
    msg = Message(
        id=uuid.uuid4(),
        vendor_id=request.vendor_id,
        client_id=request.client_id,
        sender=request.sender.value,
        body=request.body,
        sent_at=request.sent_at,
        read=False,
    )
    msg = await uow.messages_w.add(msg)
    await uow.commit()
    logger.info(
        "Message %s stored (%s -> %s)", msg.id, msg.sender_id, msg.recipient_id,
    )
    return msg


async def get_history(
    principal: Principal,
    counterparty_id: str,
    uow: UnitOfWork,
) -> list[Message]:
    counterparty_id = assert_counterparty(principal, counterparty_id)
    vendor_id, client_id = principal.conversation_parties(counterparty_id)
    return await uow.messages.list_conversation(vendor_id, client_id)
