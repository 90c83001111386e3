from __future__ import annotations

from datetime import timedelta

from marketplace_chat.client.summaries import ConversationList
from tests.conftest import BASE_TIME


def _payload(counterparty: str, *, unread: int = 1, offset_seconds: float = 0, last: str = "Hi"):
    return {
        "conversationKey": f"vendor-1-{counterparty}",
        "counterpartyId": counterparty,
        "name": counterparty.title(),
        "avatar": None,
        "lastMessage": last,
        "lastMessageAt": (BASE_TIME + timedelta(seconds=offset_seconds)).isoformat(),
        "unreadCount": unread,
    }


def test_load_sorts_newest_first():
    chats = ConversationList()
    chats.load([_payload("a", offset_seconds=0), _payload("b", offset_seconds=10)])

    assert [i.counterparty_id for i in chats.items] == ["b", "a"]
    assert chats.total_unread == 2


def test_update_replaces_fields_with_absolute_count():
    chats = ConversationList()
    chats.load([_payload("a", unread=1)])

    chats.apply_update(_payload("a", unread=3, offset_seconds=5, last="again"))

    item = chats.get("a")
    assert item.unread_count == 3
    assert item.last_message == "again"
    assert len(chats) == 1


def test_update_for_new_counterparty_is_added():
    chats = ConversationList()
    chats.apply_update(_payload("new"))
    assert chats.get("new") is not None


def test_open_conversation_suppresses_unread():
    chats = ConversationList()
    chats.load([_payload("a", unread=4), _payload("b", unread=2)])

    chats.mark_opened("a")
    chats.apply_update(_payload("a", unread=5, offset_seconds=20, last="while open"))

    assert chats.get("a").unread_count == 0
    assert chats.get("a").last_message == "while open"
    assert chats.total_unread == 2


def test_closing_lets_counts_through_again():
    chats = ConversationList()
    chats.mark_opened("a")
    chats.mark_closed()

    chats.apply_update(_payload("a", unread=1))

    assert chats.get("a").unread_count == 1


def test_late_update_keeps_newer_last_message():
    chats = ConversationList()
    chats.apply_update(_payload("a", unread=2, offset_seconds=10, last="newer"))

    chats.apply_update(_payload("a", unread=0, offset_seconds=0, last="older"))

    item = chats.get("a")
    assert item.last_message == "newer"
    assert item.unread_count == 0
