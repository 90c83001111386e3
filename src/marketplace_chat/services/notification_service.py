"""Booking notifications relayed over the socket layer.

Bookings themselves live in the CRUD side of the marketplace; the chat
server only forwards the notification to the other party's identity room.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.events import BOOKING_UPDATED, NEW_BOOKING
from marketplace_chat.application.exceptions import ForbiddenError, ValidationError
from marketplace_chat.application.ports.emitter import EventEmitter
from marketplace_chat.domain.value_objects.enums import PartyRole

logger = logging.getLogger(__name__)

# event -> side whose room is notified
RELAY_TARGETS: dict[str, PartyRole] = {
    NEW_BOOKING: PartyRole.VENDOR,
    BOOKING_UPDATED: PartyRole.CLIENT,
}


def _party(booking: Mapping[str, Any], key: str) -> str:
    value = booking.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"Booking {key} is required")
    return str(value).strip()


async def relay_booking(
    event: str,
    booking: Mapping[str, Any],
    principal: Principal,
    emitter: EventEmitter,
) -> int:
    """Forward ``booking`` unchanged to the notified party's room.

    The sender must be one of the booking's two parties. Returns the number
    of connections reached.
    """
    target_side = RELAY_TARGETS.get(event)
    if target_side is None:
        raise ValidationError(f"Not a booking notification: {event}")

    parties = {
        PartyRole.VENDOR: _party(booking, "vendorId"),
        PartyRole.CLIENT: _party(booking, "clientId"),
    }
    if parties[principal.role] != principal.id:
        raise ForbiddenError("Not a party of this booking")

    room = parties[target_side]
    delivered = await emitter.emit_to_room(room, event, dict(booking))
    logger.info("%s from %s relayed to %s (%d connection(s))", event, principal.id, room, delivered)
    return delivered
