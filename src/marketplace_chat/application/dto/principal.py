from __future__ import annotations

from dataclasses import dataclass

from marketplace_chat.domain.value_objects.enums import PartyRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    id: str
    role: PartyRole

    @property
    def room(self) -> str:
        """Room key for the WS connection registry."""
        return self.id

    def conversation_parties(self, counterparty_id: str) -> tuple[str, str]:
        """Return (vendor_id, client_id) for a conversation with counterparty_id."""
        if self.role == PartyRole.VENDOR:
            return self.id, counterparty_id
        return counterparty_id, self.id
