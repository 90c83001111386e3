from __future__ import annotations

from typing import Any, Mapping

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.exceptions import AuthenticationError
from marketplace_chat.domain.value_objects.enums import PartyRole


def principal_from_claims(payload: Mapping[str, Any]) -> Principal:
    """Build a Principal from decoded JWT claims.

    Marketplace tokens carry ``id`` and ``role``; ``sub`` is accepted for
    tokens issued by a standard identity provider.
    """
    raw_id = payload.get("id", payload.get("sub"))
    if raw_id is None or str(raw_id).strip() == "":
        raise AuthenticationError("Token has no identity claim")

    role_raw = payload.get("role", payload.get("kind"))
    try:
        role = PartyRole(role_raw)
    except ValueError as exc:
        raise AuthenticationError(f"Unsupported role: {role_raw!r}") from exc

    return Principal(id=str(raw_id), role=role)
