"""Boundary normalization for inbound ``send-message`` requests.

Older clients send the body as ``text``; newer ones as ``message``. The two are
folded into one canonical field here and nowhere else.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from marketplace_chat.application.dto.message import SendMessageDTO
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.exceptions import ValidationError
from marketplace_chat.application.policies.permissions import assert_party
from marketplace_chat.application.ports.clock import as_utc
from marketplace_chat.domain.value_objects.enums import PartyRole


class SendMessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    vendor_id: str | None = Field(None, alias="vendorId")
    client_id: str | None = Field(None, alias="clientId")
    sender: str | None = None
    message: str | None = None
    text: str | None = None
    timestamp: datetime | None = None
    temp_id: str | None = Field(None, alias="tempId")


def _coerce_id(value: Any) -> Any:
    # ids may arrive as numbers from loosely typed clients
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def parse_payload(raw: Mapping[str, Any]) -> SendMessagePayload:
    data = dict(raw)
    for key in ("vendorId", "clientId", "tempId"):
        if key in data:
            data[key] = _coerce_id(data[key])
    try:
        return SendMessagePayload.model_validate(data)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ValidationError(f"Malformed send request: {fields}") from exc


def canonical_body(payload: SendMessagePayload) -> str:
    """Compatibility shim: prefer ``message``, fall back to legacy ``text``."""
    for candidate in (payload.message, payload.text):
        if candidate is not None and candidate.strip():
            return candidate.strip()
    raise ValidationError("Message content is required")


def _resolve_party(
    supplied: str | None,
    side: PartyRole,
    principal: Principal,
) -> str:
    if supplied is not None and supplied.strip():
        return supplied.strip()
    if principal.role == side:
        return principal.id
    raise ValidationError(f"{side.value.capitalize()} ID is required")


def normalize_send_request(
    raw: Mapping[str, Any],
    principal: Principal,
    received_at: datetime,
) -> SendMessageDTO:
    """Validate a raw send-request and return its canonical form."""
    payload = parse_payload(raw)

    vendor_id = _resolve_party(payload.vendor_id, PartyRole.VENDOR, principal)
    client_id = _resolve_party(payload.client_id, PartyRole.CLIENT, principal)
    if vendor_id == client_id:
        raise ValidationError("Vendor and client must be different identities")

    if not payload.sender:
        raise ValidationError("Sender is required")
    try:
        sender = PartyRole(payload.sender)
    except ValueError as exc:
        raise ValidationError(f"Invalid sender: {payload.sender}") from exc
    if sender != principal.role:
        raise ValidationError("Sender does not match the authenticated role")

    body = canonical_body(payload)
    assert_party(principal, vendor_id, client_id)

    received_at = as_utc(received_at)
    sent_at = received_at
    if payload.timestamp is not None:
        # never later than receipt; read cutoffs are taken from the server clock
        sent_at = min(as_utc(payload.timestamp), received_at)
    return SendMessageDTO(
        vendor_id=vendor_id,
        client_id=client_id,
        sender=sender,
        body=body,
        sent_at=sent_at,
        temp_id=payload.temp_id,
    )
