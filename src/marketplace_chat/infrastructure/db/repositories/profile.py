from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_chat.domain.entities.profile import Profile
from marketplace_chat.infrastructure.db.mappers import profile as mapper
from marketplace_chat.infrastructure.db.models.user import UserModel


class ProfileReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_many(self, ids: Iterable[str]) -> dict[str, Profile]:
        wanted = sorted(set(ids))
        if not wanted:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(wanted))
        result = await self._session.execute(stmt)
        return {m.id: mapper.model_to_entity(m) for m in result.scalars().all()}
