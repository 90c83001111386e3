"""Delivery of socket send-requests: validate, persist, fan out."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from marketplace_chat.application.dto.message import message_record
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.events import CHAT_EVENT, MESSAGE, MESSAGE_ERROR, MESSAGE_SENT
from marketplace_chat.application.exceptions import AppError
from marketplace_chat.application.normalization import normalize_send_request
from marketplace_chat.application.ports.clock import Clock, SystemClock
from marketplace_chat.application.ports.emitter import EventEmitter
from marketplace_chat.application.uow import UnitOfWork
from marketplace_chat.domain.entities.message import Message
from marketplace_chat.services import conversation_service, message_service

logger = logging.getLogger(__name__)

_clock: Clock = SystemClock()


async def deliver(
    raw: Mapping[str, Any],
    principal: Principal,
    uow: UnitOfWork,
    emitter: EventEmitter,
    origin: Any,
    *,
    clock: Clock | None = None,
) -> Message | None:
    """Handle one send-message event from ``origin``.

    Returns the persisted message, or None when the request was rejected. A
    rejection reaches the originating connection only, as a single
    message-error that echoes the request's tempId when it had one.
    """
    try:
        request = normalize_send_request(raw, principal, (clock or _clock).now())
        message = await message_service.send_message(request, uow)
    except AppError as exc:
        await uow.rollback()
        logger.info("Send from %s rejected: %s", principal.id, exc.detail)
        error: dict[str, Any] = {"error": exc.detail}
        temp_id = raw.get("tempId")
        if temp_id is not None:
            error["tempId"] = str(temp_id)
        await emitter.emit_to_connection(origin, MESSAGE_ERROR, error)
        return None

    record = message_record(message)
    await emitter.emit_to_rooms(
        [message.vendor_id, message.client_id], MESSAGE, record,
    )

    ack = dict(record)
    if request.temp_id is not None:
        ack["tempId"] = request.temp_id
    await emitter.emit_to_connection(origin, MESSAGE_SENT, ack)

    await conversation_service.publish_delivery_summaries(message, uow, emitter)
    await broadcast_chat_event(message, uow, emitter)
    return message


async def broadcast_chat_event(
    message: Message,
    uow: UnitOfWork,
    emitter: EventEmitter,
) -> bool:
    """Global chat-event for widgets not bound to either private room view."""
    try:
        profiles = await conversation_service.load_profiles(
            uow, [message.vendor_id, message.client_id],
        )
        await emitter.broadcast(
            CHAT_EVENT,
            {
                "conversationKey": message.conversation_key,
                "message": message_record(message),
                "vendorSnapshot": profiles[message.vendor_id].snapshot(),
                "clientSnapshot": profiles[message.client_id].snapshot(),
            },
        )
    except Exception:
        logger.exception("Failed to broadcast chat event for message %s", message.id)
        await conversation_service.discard_failed_branch(uow)
        return False
    return True
