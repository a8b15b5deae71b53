from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.records import SubscriberRecord
from creator_direct.core.repositories.base import EscrowScopedRepository
from creator_direct.models.subscriber import Subscriber


def to_record(row: Subscriber) -> SubscriberRecord:
    return SubscriberRecord(
        account=row.account,
        expiry_height=row.expiry_height,
        has_pass=row.has_pass,
        tier=row.tier,
        auto_renewal_enabled=row.auto_renewal_enabled,
        token_id=row.token_id,
    )


class SubscriberRepository(EscrowScopedRepository[Subscriber]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Subscriber)

    async def get_by_account(self, account: str) -> Subscriber | None:
        result = await self.session.execute(
            self._scoped_select().where(Subscriber.account == account)
        )
        return result.scalar_one_or_none()

    async def get_many(self, accounts: Iterable[str]) -> list[Subscriber]:
        wanted = sorted(set(accounts))
        if not wanted:
            return []
        result = await self.session.execute(
            self._scoped_select().where(Subscriber.account.in_(wanted))
        )
        return list(result.scalars().all())

    async def count_active(self, height: int) -> int:
        return int(
            await self.session.scalar(
                select(func.count(Subscriber.id)).where(
                    Subscriber.escrow_id == self.escrow_id,
                    Subscriber.has_pass.is_(True),
                    Subscriber.expiry_height > height,
                )
            )
            or 0
        )

    async def save(self, records: Iterable[SubscriberRecord]) -> None:
        records = list(records)
        existing = {row.account: row for row in await self.get_many(r.account for r in records)}
        for record in records:
            row = existing.get(record.account)
            if row is None:
                await self.create(
                    account=record.account,
                    expiry_height=record.expiry_height,
                    has_pass=record.has_pass,
                    tier=record.tier,
                    auto_renewal_enabled=record.auto_renewal_enabled,
                    token_id=record.token_id,
                )
                continue
            row.expiry_height = record.expiry_height
            row.has_pass = record.has_pass
            row.tier = record.tier
            row.auto_renewal_enabled = record.auto_renewal_enabled
            row.token_id = record.token_id
        await self.session.flush()
