from __future__ import annotations

import logging

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.policies.permissions import assert_counterparty
from marketplace_chat.application.ports.clock import Clock, SystemClock
from marketplace_chat.application.uow import UnitOfWork

logger = logging.getLogger(__name__)

_clock: Clock = SystemClock()


async def mark_read(
    principal: Principal,
    counterparty_id: str,
    uow: UnitOfWork,
    *,
    clock: Clock | None = None,
) -> int:
    """Mark the counterparty's messages to principal as read.

    Only messages sent at or before the moment of the call are touched, so a
    message racing in concurrently stays unread. Idempotent.
    """
    counterparty_id = assert_counterparty(principal, counterparty_id)
    cutoff = (clock or _clock).now()
    vendor_id, client_id = principal.conversation_parties(counterparty_id)
    updated = await uow.messages_w.mark_read(
        vendor_id,
        client_id,
        principal.role.counterpart.value,
        cutoff,
    )
    await uow.commit()
    if updated:
        logger.info(
            "%s marked %d message(s) from %s as read", principal.id, updated, counterparty_id,
        )
    return updated
