from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.repositories.base import EscrowScopedRepository
from creator_direct.models.withdrawal import WITHDRAWAL_PENDING, WITHDRAWAL_SETTLED, Withdrawal


class WithdrawalRepository(EscrowScopedRepository[Withdrawal]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Withdrawal)

    async def reserve(self, recipient: str, amount: int) -> Withdrawal:
        return await self.create(recipient=recipient, amount=amount, status=WITHDRAWAL_PENDING)

    async def pending(self) -> list[Withdrawal]:
        result = await self.session.execute(
            self._scoped_select()
            .where(Withdrawal.status == WITHDRAWAL_PENDING)
            .order_by(Withdrawal.created_at)
        )
        return list(result.scalars().all())

    async def mark_settled(self, withdrawal: Withdrawal) -> None:
        withdrawal.status = WITHDRAWAL_SETTLED
        withdrawal.settled_at = datetime.now(timezone.utc)
        await self.session.flush()
