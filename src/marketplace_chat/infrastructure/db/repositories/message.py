from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_chat.application.exceptions import PersistenceError
from marketplace_chat.domain.entities.message import ConversationHead, Message
from marketplace_chat.domain.value_objects.enums import PartyRole
from marketplace_chat.infrastructure.db.mappers import message as mapper
from marketplace_chat.infrastructure.db.models.message import MessageModel


def _sides(role: str):
    """Return (own column, counterparty column) for a viewer role."""
    if role == PartyRole.VENDOR:
        return MessageModel.vendor_id, MessageModel.client_id
    return MessageModel.client_id, MessageModel.vendor_id


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_conversation(self, vendor_id: str, client_id: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.vendor_id == vendor_id,
                MessageModel.client_id == client_id,
            )
            .order_by(MessageModel.sent_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def count_unread(self, vendor_id: str, client_id: str, sender: str) -> int:
        stmt = select(func.count()).select_from(MessageModel).where(
            MessageModel.vendor_id == vendor_id,
            MessageModel.client_id == client_id,
            MessageModel.sender == sender,
            MessageModel.read.is_(False),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def list_heads(self, party_id: str, role: str) -> list[ConversationHead]:
        own, other = _sides(role)
        other_sender = PartyRole(role).counterpart

        # DISTINCT ON keeps the first row per counterparty: the newest one
        latest_stmt = (
            select(MessageModel)
            .where(own == party_id)
            .distinct(other)
            .order_by(other, MessageModel.sent_at.desc(), MessageModel.id.desc())
        )
        unread_stmt = (
            select(other, func.count())
            .where(
                own == party_id,
                MessageModel.sender == other_sender,
                MessageModel.read.is_(False),
            )
            .group_by(other)
        )
        latest = (await self._session.execute(latest_stmt)).scalars().all()
        unread = dict((await self._session.execute(unread_stmt)).tuples().all())

        heads = []
        for model in latest:
            counterparty_id = model.client_id if role == PartyRole.VENDOR else model.vendor_id
            heads.append(
                ConversationHead(
                    counterparty_id=counterparty_id,
                    last_message=mapper.model_to_entity(model),
                    unread_count=int(unread.get(counterparty_id, 0)),
                )
            )
        heads.sort(key=lambda h: h.last_message.sent_at, reverse=True)
        return heads


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to store message") from exc
        return mapper.model_to_entity(model)

    async def mark_read(
        self,
        vendor_id: str,
        client_id: str,
        sender: str,
        up_to: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.vendor_id == vendor_id,
                MessageModel.client_id == client_id,
                MessageModel.sender == sender,
                MessageModel.read.is_(False),
                MessageModel.sent_at <= up_to,
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to mark messages as read") from exc
        return result.rowcount or 0
