"""Display-name lookups for user ids referenced by orders and tickets"""

from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserNameLookup:
    """
    Batched id -> name resolution with a cache.

    One instance lives for one request or feed load; create a new one to
    invalidate. Kept apart from the order/ticket queries themselves.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._cache: Dict[UUID, Optional[str]] = {}

    async def resolve(self, user_ids: Iterable[UUID]) -> Dict[UUID, Optional[str]]:
        wanted = {user_id for user_id in user_ids if user_id}
        missing = [user_id for user_id in wanted if user_id not in self._cache]

        if missing:
            result = await self.db.execute(
                select(User.id, User.name).where(User.id.in_(missing))
            )
            found = {row.id: row.name for row in result}
            for user_id in missing:
                self._cache[user_id] = found.get(user_id)

        return {user_id: self._cache[user_id] for user_id in wanted}

    def name_for(self, user_id: UUID) -> Optional[str]:
        return self._cache.get(user_id)
