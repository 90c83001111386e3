from __future__ import annotations

import pytest

from marketplace_chat.application.dto.message import SendMessageDTO, message_record
from marketplace_chat.application.exceptions import PersistenceError, ValidationError
from marketplace_chat.domain.value_objects.enums import PartyRole
from marketplace_chat.services import message_service
from tests.conftest import BASE_TIME, CLIENT_ID, VENDOR_ID, FakeUoW, make_message


def _request(body: str = "Hi") -> SendMessageDTO:
    return SendMessageDTO(
        vendor_id=VENDOR_ID,
        client_id=CLIENT_ID,
        sender=PartyRole.CLIENT,
        body=body,
        sent_at=BASE_TIME,
    )


@pytest.mark.asyncio
async def test_send_message_persists_unread_record():
    uow = FakeUoW()

    msg = await message_service.send_message(_request(), uow)

    assert uow.stored == [msg]
    assert msg.sender == "client"
    assert msg.body == "Hi"
    assert msg.read is False
    assert msg.sent_at == BASE_TIME
    assert uow._committed is True


@pytest.mark.asyncio
async def test_send_message_assigns_distinct_ids():
    uow = FakeUoW()

    first = await message_service.send_message(_request(), uow)
    second = await message_service.send_message(_request(), uow)

    assert first.id != second.id
    assert len(uow.stored) == 2


@pytest.mark.asyncio
async def test_store_failure_commits_nothing():
    uow = FakeUoW()
    uow.messages_w.fail_with = PersistenceError("Failed to store message")

    with pytest.raises(PersistenceError):
        await message_service.send_message(_request(), uow)

    assert uow.stored == []
    assert uow._committed is False


@pytest.mark.asyncio
async def test_history_is_chronological(client_principal):
    uow = FakeUoW()
    later = make_message(body="second", offset_seconds=5)
    earlier = make_message(body="first", sender="vendor")
    other = make_message(vendor_id="vendor-2", body="elsewhere")
    uow.stored.extend([later, other, earlier])

    history = await message_service.get_history(client_principal, VENDOR_ID, uow)

    assert [m.body for m in history] == ["first", "second"]


@pytest.mark.asyncio
async def test_history_does_not_mark_read(vendor_principal):
    uow = FakeUoW()
    uow.stored.append(make_message())

    await message_service.get_history(vendor_principal, CLIENT_ID, uow)

    assert uow.stored[0].read is False


@pytest.mark.asyncio
async def test_history_with_self_is_rejected(vendor_principal):
    with pytest.raises(ValidationError):
        await message_service.get_history(vendor_principal, VENDOR_ID, FakeUoW())


def test_record_mirrors_body_into_text():
    record = message_record(make_message(body="hey"))

    assert record["message"] == record["text"] == "hey"
    assert record["vendorId"] == VENDOR_ID
    assert record["clientId"] == CLIENT_ID
    assert record["timestamp"] == BASE_TIME.isoformat()
    assert record["read"] is False
