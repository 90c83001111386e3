"""Seed development data: creates the schema, two users and a short conversation.

Prints a bearer token for each user when JWT_SECRET is configured.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from marketplace_chat.config import settings
from marketplace_chat.domain.entities.message import Message
from marketplace_chat.infrastructure.db.base import Base
from marketplace_chat.infrastructure.db.models import UserModel
from marketplace_chat.infrastructure.db.session import AsyncSessionLocal, engine
from marketplace_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

VENDOR_ID = "vendor-dev-1"
CLIENT_ID = "client-dev-1"


async def create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed() -> None:
    await create_schema()
    async with AsyncSessionLocal() as session:
        await session.merge(UserModel(id=VENDOR_ID, name="Aurora Catering", role="vendor"))
        await session.merge(UserModel(id=CLIENT_ID, name="Sam Client", role="client"))

        uow = SqlAlchemyUoW(session)
        start = datetime.now(timezone.utc) - timedelta(minutes=10)
        messages_data = [
            ("client", "Hi! Are you available on the 14th?"),
            ("vendor", "Hello, yes we are. How many guests?"),
            ("client", "Around 80."),
            ("vendor", "Great, I'll send over a quote today."),
        ]
        for i, (sender, body) in enumerate(messages_data):
            await uow.messages_w.add(
                Message(
                    id=uuid.uuid4(),
                    vendor_id=VENDOR_ID,
                    client_id=CLIENT_ID,
                    sender=sender,
                    body=body,
                    sent_at=start + timedelta(minutes=i),
                    read=i < len(messages_data) - 1,
                )
            )

        await uow.commit()
        logger.info("Seeded conversation %s-%s with %d messages", VENDOR_ID, CLIENT_ID, len(messages_data))

    if settings.JWT_SECRET:
        for user_id, role in ((VENDOR_ID, "vendor"), (CLIENT_ID, "client")):
            token = jwt.encode(
                {"id": user_id, "role": role}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM,
            )
            logger.info("%s token: %s", role, token)

    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
