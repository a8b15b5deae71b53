from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.analytics import AnalyticsSnapshot
from creator_direct.core.context import reset_current_escrow_id, set_current_escrow_id
from creator_direct.core.db import get_db_session
from creator_direct.core.errors import EscrowError, TransferFailed
from creator_direct.core.escrow import (
    EscrowParams,
    SubscriptionEscrow,
    SubscriptionInfo,
    SubscriptionResult,
)
from creator_direct.core.events import Withdrawn
from creator_direct.core.ledger import BlockClock, CallContext, GatewayLedger, PayoutClient
from creator_direct.core.pricing import TierPricingTable, TierPrices
from creator_direct.core.publisher import EventPublisher
from creator_direct.core.records import CreatorConfig
from creator_direct.core.repositories.base import PaymentRejectedError
from creator_direct.core.repositories.escrows import EscrowRepository
from creator_direct.models.withdrawal import Withdrawal

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class EscrowService:
    """Runs escrow operations as database transactions.

    Each call locks the escrow row, replays the operation on a
    ``SubscriptionEscrow`` hydrated from storage, writes the result back and
    commits. Events are published only once the commit succeeded.

    Value reaches the escrow only through verified payments: a payment
    recorded from the provider webhook is claimed by reference, once, inside
    the same transaction that credits it.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        repository: EscrowRepository | None = None,
        publisher: EventPublisher | None = None,
        payout: PayoutClient | None = None,
        clock: BlockClock | None = None,
    ) -> None:
        self.session = session
        self.repository = repository or EscrowRepository(session)
        self.publisher = publisher or EventPublisher()
        self.payout = payout or PayoutClient()
        self.clock = clock or BlockClock.from_settings()

    def call_context(self, caller: str = "", attached_amount: int = 0) -> CallContext:
        return CallContext(caller=caller, height=self.clock.current_height(), attached_amount=attached_amount)

    async def construct(
        self,
        caller: str,
        *,
        base_price: int,
        period_length: int,
        name: str,
        description: str,
    ) -> UUID:
        config = CreatorConfig(
            creator=caller,
            base_price=base_price,
            period_length=period_length,
            name=name,
            description=description,
        )
        row = await self.repository.create(config)
        token = set_current_escrow_id(row.id)
        try:
            await self.repository.tier_prices.save(TierPricingTable.from_base_price(base_price).items())
        finally:
            reset_current_escrow_id(token)
        await self.session.commit()
        logger.info("Escrow constructed escrow_id=%s creator=%s", row.id, caller)
        return row.id

    async def record_payment(self, escrow_id: UUID, *, reference: str, payer: str, amount: int) -> bool:
        """Stores a deposit confirmed by the payment provider; replays are ignored."""
        token = set_current_escrow_id(escrow_id)
        try:
            await self.repository.get()
            recorded = await self.repository.payments.record(reference, payer, amount)
        finally:
            reset_current_escrow_id(token)
        await self.session.commit()
        if recorded:
            logger.info("Payment recorded escrow_id=%s reference=%s payer=%s", escrow_id, reference, payer)
        return recorded

    async def _invoke(
        self,
        caller: str,
        operation: Callable[[SubscriptionEscrow], ResultT],
        *,
        accounts: Iterable[str] = (),
        mutates: bool = True,
        payment_reference: str | None = None,
    ) -> tuple[ResultT, GatewayLedger, SubscriptionEscrow]:
        row = await self.repository.get(for_update=mutates)

        try:
            attached_amount = 0
            if payment_reference is not None:
                payment = await self.repository.payments.claim(payment_reference, caller)
                attached_amount = int(payment.amount)

            ledger = GatewayLedger(self.call_context(caller, attached_amount), int(row.held_balance))
            escrow = await self.repository.load_engine(row, ledger, accounts)

            if not mutates:
                return operation(escrow), ledger, escrow

            result = await asyncio.to_thread(operation, escrow)
        except (EscrowError, PaymentRejectedError):
            await self.session.rollback()
            raise

        await self.repository.store_engine(row, escrow, held_balance=ledger.balance)
        return result, ledger, escrow

    async def _execute(
        self,
        caller: str,
        operation: Callable[[SubscriptionEscrow], ResultT],
        *,
        accounts: Iterable[str] = (),
        payment_reference: str | None = None,
    ) -> ResultT:
        result, _, escrow = await self._invoke(
            caller, operation, accounts=accounts, payment_reference=payment_reference
        )
        await self.session.commit()
        await self.publisher.publish(self.repository.escrow_id, escrow.events.drain())
        return result

    async def _query(
        self, operation: Callable[[SubscriptionEscrow], ResultT], *, accounts: Iterable[str] = ()
    ) -> ResultT:
        result, _, _ = await self._invoke("", operation, accounts=accounts, mutates=False)
        return result

    # Subscriptions

    async def subscribe(
        self, caller: str, payment_reference: str, tier: int | None = None
    ) -> SubscriptionResult:
        if tier is None:
            return await self._execute(
                caller, SubscriptionEscrow.subscribe, accounts=[caller], payment_reference=payment_reference
            )
        return await self._execute(
            caller,
            lambda escrow: escrow.subscribe_with_tier(tier),
            accounts=[caller],
            payment_reference=payment_reference,
        )

    async def gift_subscription(
        self, caller: str, recipient: str, tier: int, payment_reference: str
    ) -> SubscriptionResult:
        return await self._execute(
            caller,
            lambda escrow: escrow.gift_subscription(recipient, tier),
            accounts=[recipient],
            payment_reference=payment_reference,
        )

    async def set_auto_renewal(self, caller: str, enabled: bool) -> None:
        await self._execute(caller, lambda escrow: escrow.set_auto_renewal(enabled), accounts=[caller])

    async def get_subscription_info(self, account: str) -> SubscriptionInfo:
        return await self._query(lambda escrow: escrow.get_subscription_info(account), accounts=[account])

    async def is_active(self, account: str) -> bool:
        return await self._query(lambda escrow: escrow.is_active(account), accounts=[account])

    async def is_auto_renewal_enabled(self, account: str) -> bool:
        return await self._query(lambda escrow: escrow.is_auto_renewal_enabled(account), accounts=[account])

    async def get_token(self, account: str) -> int | None:
        return await self._query(lambda escrow: escrow.get_token(account), accounts=[account])

    async def get_subscriber_tier(self, account: str) -> int:
        return await self._query(lambda escrow: escrow.get_subscriber_tier(account), accounts=[account])

    # Creator operations

    async def get_params(self) -> EscrowParams:
        return await self._query(lambda escrow: escrow.get_params())

    async def update_params(self, caller: str, price: int, period: int) -> None:
        await self._execute(caller, lambda escrow: escrow.update_params(price, period))

    async def get_tier_price(self, tier: int) -> int:
        return await self._query(lambda escrow: escrow.get_tier_price(tier))

    async def get_all_tier_prices(self) -> TierPrices:
        return await self._query(lambda escrow: escrow.get_all_tier_prices())

    async def update_tier_price(self, caller: str, tier: int, price: int) -> None:
        await self._execute(caller, lambda escrow: escrow.update_tier_price(tier, price))

    async def withdraw(self, caller: str) -> int:
        """Reserves the held balance, commits the reservation, then pays it out.

        A payout that failed, or whose settlement was never committed, stays
        pending and is retried with the same idempotency key on the next
        withdrawal, before any new funds are reserved for payout.
        """
        _, ledger, escrow = await self._invoke(caller, lambda escrow: escrow.withdraw())
        # Withdrawn is published per payout once it settles.
        escrow.events.drain()

        for to, amount in ledger.transfers:
            await self.repository.withdrawals.reserve(to, amount)
        pending = await self.repository.withdrawals.pending()
        await self.session.commit()

        settled = 0
        for withdrawal in pending:
            settled += await self._settle(withdrawal)
        if settled:
            logger.info("Escrow withdrawal completed creator=%s amount=%s", caller, settled)
        return settled

    async def _settle(self, withdrawal: Withdrawal) -> int:
        amount = int(withdrawal.amount)
        sent = await asyncio.to_thread(
            self.payout.send,
            withdrawal.recipient,
            amount,
            idempotency_key=str(withdrawal.id),
        )
        if not sent:
            logger.warning("Withdrawal %s left pending after payout failure", withdrawal.id)
            raise TransferFailed(f"Transfer of {amount} to {withdrawal.recipient} was rejected")

        await self.repository.withdrawals.mark_settled(withdrawal)
        await self.session.commit()
        await self.publisher.publish(
            withdrawal.escrow_id, [Withdrawn(to=withdrawal.recipient, amount=amount)]
        )
        return amount

    async def analytics(self) -> AnalyticsSnapshot:
        row = await self.repository.get()
        active_count = await self.repository.subscribers.count_active(self.clock.current_height())
        return AnalyticsSnapshot(row.total_subscribers, int(row.total_revenue), active_count)


async def get_escrow_service(
    session: AsyncSession = Depends(get_db_session),
) -> EscrowService:
    return EscrowService(session)
