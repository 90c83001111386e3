from __future__ import annotations

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.exceptions import ForbiddenError, ValidationError


def assert_party(principal: Principal, vendor_id: str, client_id: str) -> None:
    """Raise unless principal is the party of its own role in the conversation."""
    own_id = vendor_id if principal.role == "vendor" else client_id
    if own_id != principal.id:
        raise ForbiddenError("Not a participant of this conversation")


def assert_counterparty(principal: Principal, counterparty_id: str) -> str:
    counterparty_id = counterparty_id.strip()
    if not counterparty_id:
        raise ValidationError("Counterparty id is required")
    if counterparty_id == principal.id:
        raise ValidationError("Cannot open a conversation with yourself")
    return counterparty_id
