"""Client-side view of one open conversation.

Holds the rendered message list and reconciles optimistic entries against
server-confirmed records. Everything here is synchronous and single-threaded;
the session drives it from socket and HTTP callbacks.
"""
from __future__ import annotations

import bisect
import itertools
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from marketplace_chat.api.v1.schemas.message import MessageResponse
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.ports.clock import as_utc
from marketplace_chat.domain.value_objects.enums import ViewState

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class MessageEntry:
    id: str | None
    vendor_id: str
    client_id: str
    sender: str
    body: str
    sent_at: datetime
    read: bool = False
    is_optimistic: bool = False
    temp_id: str | None = None
    failed: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> MessageEntry:
        data = dict(record)
        if "message" not in data and "text" in data:
            data["message"] = data["text"]
        parsed = MessageResponse.model_validate(data)
        return cls(
            id=str(parsed.id),
            vendor_id=parsed.vendor_id,
            client_id=parsed.client_id,
            sender=parsed.sender,
            body=parsed.body,
            sent_at=as_utc(parsed.sent_at),
            read=parsed.read,
        )

    @property
    def pending(self) -> bool:
        return self.is_optimistic and not self.failed


@dataclass(frozen=True, slots=True)
class FetchTicket:
    """Identifies one history fetch; stale tickets are discarded on arrival."""

    counterparty_id: str
    generation: int


def _sort_key(entry: MessageEntry) -> datetime:
    return entry.sent_at


class ConversationView:
    def __init__(self, principal: Principal, *, window_seconds: float = 2.0) -> None:
        self.principal = principal
        self.state = ViewState.IDLE
        self.counterparty_id: str | None = None
        self.entries: list[MessageEntry] = []
        self.draft = ""
        self.last_error: str | None = None
        self._generation = 0
        self._submitted = itertools.count(1)
        self._window = timedelta(seconds=window_seconds)

    @property
    def is_open(self) -> bool:
        return self.counterparty_id is not None

    @property
    def parties(self) -> tuple[str, str] | None:
        if self.counterparty_id is None:
            return None
        return self.principal.conversation_parties(self.counterparty_id)

    def accepts(self, record: Mapping[str, Any]) -> bool:
        """True if the record belongs to the conversation on screen."""
        parties = self.parties
        if parties is None:
            return False
        return (str(record.get("vendorId")), str(record.get("clientId"))) == parties

    # -- open / close -----------------------------------------------------

    def begin_open(self, counterparty_id: str) -> FetchTicket:
        if counterparty_id != self.counterparty_id:
            self.entries = []
            self.draft = ""
        self.counterparty_id = counterparty_id
        self.last_error = None
        self._generation += 1
        self.state = ViewState.LOADING
        return FetchTicket(counterparty_id, self._generation)

    def is_current(self, ticket: FetchTicket) -> bool:
        return (
            ticket.generation == self._generation
            and ticket.counterparty_id == self.counterparty_id
        )

    def finish_open(self, ticket: FetchTicket, records: Iterable[Mapping[str, Any]]) -> bool:
        """Apply fetched history unless a newer fetch superseded this one."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale history for %s", ticket.counterparty_id)
            return False

        history = sorted((MessageEntry.from_record(r) for r in records), key=_sort_key)
        known_ids = {e.id for e in history}
        unclaimed = list(history)
        carried: list[MessageEntry] = []
        for entry in self.entries:
            if entry.is_optimistic:
                match = self._find_counterpart(entry, unclaimed)
                if match is None:
                    carried.append(entry)
                else:
                    unclaimed.remove(match)
            elif entry.id not in known_ids:
                # confirmed over the socket after the fetch was issued
                carried.append(entry)

        self.entries = sorted(history + carried, key=_sort_key)
        self.state = ViewState.READY
        return True

    def fail_open(self, ticket: FetchTicket, error: str) -> bool:
        if not self.is_current(ticket):
            return False
        self.last_error = error
        self.state = ViewState.READY
        return True

    def close(self) -> None:
        self._generation += 1
        self.counterparty_id = None
        self.entries = []
        self.draft = ""
        self.last_error = None
        self.state = ViewState.IDLE

    # -- local send -------------------------------------------------------

    def submit(self, now: datetime) -> MessageEntry | None:
        """Append an optimistic entry for the draft and clear it.

        Returns None and leaves the draft alone when there is nothing to send
        or no conversation is open.
        """
        body = self.draft.strip()
        parties = self.parties
        if not body or parties is None:
            return None

        # resubmitting a failed message replaces its failed entry
        self.entries = [e for e in self.entries if not (e.failed and e.body == body)]

        vendor_id, client_id = parties
        entry = MessageEntry(
            id=None,
            vendor_id=vendor_id,
            client_id=client_id,
            sender=self.principal.role.value,
            body=body,
            sent_at=as_utc(now),
            is_optimistic=True,
            temp_id=f"{time.time_ns()}-{next(self._submitted)}",
        )
        self._insert(entry)
        self.draft = ""
        self.last_error = None
        return entry

    def fail_pending(self, error: str, temp_id: str | None = None) -> MessageEntry | None:
        """Mark the rejected entry failed and give its text back to the input.

        The entry is found by ``temp_id``; without one the oldest pending
        entry is taken.
        """
        self.last_error = error
        for entry in self.entries:
            if entry.pending and (temp_id is None or entry.temp_id == temp_id):
                entry.failed = True
                if not self.draft:
                    self.draft = entry.body
                return entry
        return None

    # -- confirmation -----------------------------------------------------

    def confirm(self, record: Mapping[str, Any], temp_id: str | None = None) -> bool:
        """Merge a server-confirmed record. Returns True if the list changed."""
        if not self.accepts(record):
            return False
        confirmed = MessageEntry.from_record(record)

        placeholder = None
        if temp_id is not None:
            placeholder = next(
                (e for e in self.entries if e.is_optimistic and e.temp_id == temp_id), None,
            )

        existing = next((e for e in self.entries if e.id == confirmed.id), None)
        if existing is not None:
            if placeholder is not None:
                self.entries.remove(placeholder)
            existing.read = existing.read or confirmed.read
            self._touch()
            return placeholder is not None

        if placeholder is None:
            placeholder = self._find_counterpart(confirmed, self.entries, optimistic=True)

        if placeholder is None:
            self._insert(confirmed)
        else:
            self._replace(placeholder, confirmed)
        self._touch()
        return True

    def _touch(self) -> None:
        # an in-flight fetch still owns the transition to ready
        if self.state is not ViewState.LOADING:
            self.state = ViewState.READY

    def _find_counterpart(
        self,
        target: MessageEntry,
        candidates: Iterable[MessageEntry],
        *,
        optimistic: bool = False,
    ) -> MessageEntry | None:
        for candidate in candidates:
            if optimistic and not candidate.pending:
                continue
            if (
                candidate.sender == target.sender
                and candidate.body == target.body
                and abs(candidate.sent_at - target.sent_at) <= self._window
            ):
                return candidate
        return None

    def _insert(self, entry: MessageEntry) -> None:
        bisect.insort_right(self.entries, entry, key=_sort_key)

    def _replace(self, old: MessageEntry, new: MessageEntry) -> None:
        idx = self.entries.index(old)
        self.entries[idx] = new
        before_ok = idx == 0 or self.entries[idx - 1].sent_at <= new.sent_at
        after_ok = idx == len(self.entries) - 1 or new.sent_at <= self.entries[idx + 1].sent_at
        if not (before_ok and after_ok):
            moved = self.entries.pop(idx)
            self._insert(moved)
