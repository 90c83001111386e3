from __future__ import annotations

from typing import NewType

ConversationKey = NewType("ConversationKey", str)


def conversation_key(vendor_id: str, client_id: str) -> ConversationKey:
    """Stable key for the vendor/client pair, vendor side first."""
    return ConversationKey(f"{vendor_id}-{client_id}")
