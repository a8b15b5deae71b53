from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.repositories.base import EscrowScopedRepository
from creator_direct.models.tier_price import TierPrice


class TierPriceRepository(EscrowScopedRepository[TierPrice]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=TierPrice)

    async def prices(self) -> dict[int, int]:
        result = await self.session.execute(self._scoped_select())
        return {row.tier: int(row.price) for row in result.scalars().all()}

    async def save(self, prices: Iterable[tuple[int, int]]) -> None:
        result = await self.session.execute(self._scoped_select())
        existing = {row.tier: row for row in result.scalars().all()}
        for tier, price in prices:
            row = existing.get(tier)
            if row is None:
                await self.create(tier=tier, price=price)
            elif int(row.price) != price:
                row.price = price
        await self.session.flush()
