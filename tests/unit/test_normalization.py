from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from marketplace_chat.application.exceptions import ForbiddenError, ValidationError
from marketplace_chat.application.normalization import canonical_body, normalize_send_request, parse_payload
from marketplace_chat.domain.value_objects.enums import PartyRole
from tests.conftest import BASE_TIME, CLIENT_ID, VENDOR_ID


def _raw(**overrides):
    raw = {"vendorId": VENDOR_ID, "clientId": CLIENT_ID, "sender": "client", "message": "Hi"}
    raw.update(overrides)
    return {k: v for k, v in raw.items() if v is not None}


def test_full_request_is_accepted(client_principal):
    req = normalize_send_request(_raw(), client_principal, BASE_TIME)

    assert req.vendor_id == VENDOR_ID
    assert req.client_id == CLIENT_ID
    assert req.sender is PartyRole.CLIENT
    assert req.body == "Hi"
    assert req.sent_at == BASE_TIME
    assert req.temp_id is None


def test_legacy_text_field_is_folded_into_body(client_principal):
    raw = _raw(message=None, text="  from an old client  ")
    req = normalize_send_request(raw, client_principal, BASE_TIME)
    assert req.body == "from an old client"


def test_message_wins_over_text():
    payload = parse_payload({"message": "new", "text": "old"})
    assert canonical_body(payload) == "new"


def test_blank_message_falls_back_to_text():
    payload = parse_payload({"message": "   ", "text": "old"})
    assert canonical_body(payload) == "old"


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   ", "text": "\n"}])
def test_empty_body_is_rejected(client_principal, body):
    raw = {"vendorId": VENDOR_ID, "clientId": CLIENT_ID, "sender": "client", **body}
    with pytest.raises(ValidationError, match="Message content is required"):
        normalize_send_request(raw, client_principal, BASE_TIME)


def test_missing_own_side_is_derived_from_identity(client_principal):
    req = normalize_send_request(_raw(clientId=None), client_principal, BASE_TIME)
    assert req.client_id == CLIENT_ID


def test_missing_other_side_is_not_derived(client_principal):
    with pytest.raises(ValidationError, match="Vendor ID is required"):
        normalize_send_request(_raw(vendorId=None), client_principal, BASE_TIME)


def test_vendor_missing_client_side(vendor_principal):
    raw = {"vendorId": VENDOR_ID, "sender": "vendor", "message": "Hello"}
    with pytest.raises(ValidationError, match="Client ID is required"):
        normalize_send_request(raw, vendor_principal, BASE_TIME)


def test_sender_is_required(client_principal):
    with pytest.raises(ValidationError, match="Sender is required"):
        normalize_send_request(_raw(sender=None), client_principal, BASE_TIME)


def test_unknown_sender_is_rejected(client_principal):
    with pytest.raises(ValidationError, match="Invalid sender"):
        normalize_send_request(_raw(sender="admin"), client_principal, BASE_TIME)


def test_sender_must_match_authenticated_role(client_principal):
    with pytest.raises(ValidationError, match="does not match"):
        normalize_send_request(_raw(sender="vendor"), client_principal, BASE_TIME)


def test_cannot_send_on_behalf_of_another_client(client_principal):
    with pytest.raises(ForbiddenError):
        normalize_send_request(_raw(clientId="client-2"), client_principal, BASE_TIME)


def test_parties_must_differ(client_principal):
    with pytest.raises(ValidationError, match="different"):
        normalize_send_request(_raw(vendorId=CLIENT_ID), client_principal, BASE_TIME)


def test_numeric_ids_are_accepted(vendor_principal):
    raw = {"vendorId": VENDOR_ID, "clientId": 17, "sender": "vendor", "message": "Hello"}
    req = normalize_send_request(raw, vendor_principal, BASE_TIME)
    assert req.client_id == "17"


def test_client_timestamp_is_kept_and_normalized_to_utc(client_principal):
    local = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    req = normalize_send_request(_raw(timestamp=local.isoformat()), client_principal, BASE_TIME)
    assert req.sent_at == BASE_TIME
    assert req.sent_at.tzinfo == timezone.utc


def test_naive_timestamp_is_taken_as_utc(client_principal):
    req = normalize_send_request(_raw(timestamp="2024-05-01T10:00:00"), client_principal, BASE_TIME)
    assert req.sent_at == BASE_TIME


def test_malformed_timestamp_is_a_validation_error(client_principal):
    with pytest.raises(ValidationError, match="timestamp"):
        normalize_send_request(_raw(timestamp="yesterday-ish"), client_principal, BASE_TIME)


def test_temp_id_is_carried(client_principal):
    req = normalize_send_request(_raw(tempId=1714557600000), client_principal, BASE_TIME)
    assert req.temp_id == "1714557600000"


def test_timestamp_ahead_of_server_is_capped_at_receipt(client_principal):
    ahead = BASE_TIME + timedelta(seconds=90)
    req = normalize_send_request(_raw(timestamp=ahead.isoformat()), client_principal, BASE_TIME)
    assert req.sent_at == BASE_TIME


def test_earlier_timestamp_is_kept(client_principal):
    behind = BASE_TIME - timedelta(seconds=5)
    req = normalize_send_request(_raw(timestamp=behind.isoformat()), client_principal, BASE_TIME)
    assert req.sent_at == behind
