from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.repositories.base import (
    EscrowScopedRepository,
    PaymentAlreadyConsumedError,
    PaymentNotFoundError,
)
from creator_direct.models.payment import Payment


class PaymentRepository(EscrowScopedRepository[Payment]):
    """Verified deposits waiting to be attached to a subscription.

    References are unique across all escrows, so a provider payment can only
    ever be recorded, and spent, once.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Payment)

    async def get_by_reference(self, reference: str) -> Payment | None:
        return await self.session.scalar(select(Payment).where(Payment.reference == reference))

    async def record(self, reference: str, payer: str, amount: int) -> bool:
        if await self.get_by_reference(reference) is not None:
            return False
        await self.create(reference=reference, payer=payer, amount=amount, consumed=False)
        return True

    async def claim(self, reference: str, payer: str) -> Payment:
        payment = await self.session.scalar(
            self._scoped_select()
            .where(Payment.reference == reference, Payment.payer == payer)
            .with_for_update()
        )
        if payment is None:
            raise PaymentNotFoundError(f"No verified payment {reference} from {payer} for this escrow")
        if payment.consumed:
            raise PaymentAlreadyConsumedError(f"Payment {reference} has already been used")

        payment.consumed = True
        payment.consumed_at = datetime.now(timezone.utc)
        return payment
