"""Conversation summaries: the per-viewer projection behind active-chat lists."""
from __future__ import annotations

import logging
from typing import Iterable

from marketplace_chat.application.dto.conversation import ConversationSummary
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.events import CONVERSATION_UPDATED
from marketplace_chat.application.ports.emitter import EventEmitter
from marketplace_chat.application.uow import UnitOfWork
from marketplace_chat.domain.entities.message import Message
from marketplace_chat.domain.entities.profile import Profile
from marketplace_chat.domain.value_objects.enums import PartyRole

logger = logging.getLogger(__name__)


async def load_profiles(uow: UnitOfWork, ids: Iterable[str]) -> dict[str, Profile]:
    """Profiles by id; unknown ids get a bare snapshot rather than being dropped."""
    wanted = set(ids)
    found = await uow.profiles.get_many(wanted)
    return {i: found.get(i) or Profile(id=i) for i in wanted}


async def discard_failed_branch(uow: UnitOfWork) -> None:
    """Roll back after a failed fan-out branch so the next one starts clean.

    One failed statement aborts the whole PostgreSQL transaction; every
    branch shares the session, so the next branch needs a fresh one.
    """
    try:
        await uow.rollback()
    except Exception:
        logger.exception("Rollback after a failed fan-out branch failed")


def _summary(
    message: Message,
    viewer_role: PartyRole,
    counterparty: Profile,
    unread_count: int,
) -> ConversationSummary:
    return ConversationSummary(
        conversation_key=message.conversation_key,
        counterparty_id=message.party_id(viewer_role.counterpart),
        name=counterparty.name,
        avatar=counterparty.avatar,
        last_message=message.body,
        last_message_at=message.sent_at,
        unread_count=unread_count,
    )


async def summary_after_delivery(
    message: Message,
    viewer_role: PartyRole,
    uow: UnitOfWork,
) -> ConversationSummary:
    """Summary of a just-delivered message as seen by one party.

    The author never has unread messages in the conversation they just
    wrote to. The recipient's count comes from the store, so it already
    includes the new message.
    """
    counterparty_id = message.party_id(viewer_role.counterpart)
    profiles = await load_profiles(uow, [counterparty_id])
    if viewer_role == message.sender:
        unread = 0
    else:
        unread = await uow.messages.count_unread(
            message.vendor_id, message.client_id, message.sender,
        )
    return _summary(message, viewer_role, profiles[counterparty_id], unread)


async def publish_delivery_summaries(
    message: Message,
    uow: UnitOfWork,
    emitter: EventEmitter,
) -> int:
    """Emit one conversation-updated per party; a failing branch does not stop the other."""
    published = 0
    for role in (PartyRole.VENDOR, PartyRole.CLIENT):
        room = message.party_id(role)
        try:
            summary = await summary_after_delivery(message, role, uow)
            await emitter.emit_to_room(room, CONVERSATION_UPDATED, summary.to_payload())
            published += 1
        except Exception:
            logger.exception(
                "Failed to publish summary of message %s to %s", message.id, room,
            )
            await discard_failed_branch(uow)
    return published


async def get_summary(
    principal: Principal,
    counterparty_id: str,
    uow: UnitOfWork,
) -> ConversationSummary | None:
    """Current summary of one conversation, or None if it has no messages yet."""
    vendor_id, client_id = principal.conversation_parties(counterparty_id)
    history = await uow.messages.list_conversation(vendor_id, client_id)
    if not history:
        return None
    last = history[-1]
    unread = await uow.messages.count_unread(
        vendor_id, client_id, principal.role.counterpart.value,
    )
    profiles = await load_profiles(uow, [counterparty_id])
    return _summary(last, principal.role, profiles[counterparty_id], unread)


async def list_active(principal: Principal, uow: UnitOfWork) -> list[ConversationSummary]:
    """Summaries of every conversation the principal takes part in, newest first."""
    heads = await uow.messages.list_heads(principal.id, principal.role.value)
    profiles = await load_profiles(uow, [h.counterparty_id for h in heads])
    summaries = [
        _summary(h.last_message, principal.role, profiles[h.counterparty_id], h.unread_count)
        for h in heads
    ]
    summaries.sort(key=lambda s: s.last_message_at, reverse=True)
    return summaries


async def publish_viewer_summary(
    principal: Principal,
    counterparty_id: str,
    uow: UnitOfWork,
    emitter: EventEmitter,
) -> bool:
    """Re-emit the viewer's own summary so every open widget converges after a read."""
    try:
        summary = await get_summary(principal, counterparty_id, uow)
        if summary is None:
            return False
        await emitter.emit_to_room(principal.room, CONVERSATION_UPDATED, summary.to_payload())
    except Exception:
        logger.exception("Failed to push summary to %s after mark-read", principal.id)
        await discard_failed_branch(uow)
        return False
    return True
