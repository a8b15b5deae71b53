from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creator_direct.core.analytics import AnalyticsAggregate
from creator_direct.core.context import get_current_escrow_id
from creator_direct.core.escrow import SubscriptionEscrow
from creator_direct.core.ledger import LedgerRuntime
from creator_direct.core.pricing import TierPricingTable
from creator_direct.core.records import CreatorConfig, SubscriberStore, TokenSequence
from creator_direct.core.repositories.base import EscrowContextMissingError, EscrowNotFoundError
from creator_direct.core.repositories.payments import PaymentRepository
from creator_direct.core.repositories.subscribers import SubscriberRepository, to_record
from creator_direct.core.repositories.tier_prices import TierPriceRepository
from creator_direct.core.repositories.withdrawals import WithdrawalRepository
from creator_direct.models.escrow import Escrow


class EscrowRepository:
    """Loads an escrow's state into a ``SubscriptionEscrow`` and writes it back.

    Only the subscriber records an invocation touches are loaded; the
    active-subscriber count is answered by ``SubscriberRepository`` with an
    indexed query instead.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.tier_prices = TierPriceRepository(session)
        self.subscribers = SubscriberRepository(session)
        self.payments = PaymentRepository(session)
        self.withdrawals = WithdrawalRepository(session)

    @property
    def escrow_id(self) -> UUID:
        escrow_id = get_current_escrow_id()
        if escrow_id is None:
            raise EscrowContextMissingError("Escrow context is missing from the current request")
        return escrow_id

    async def create(self, config: CreatorConfig) -> Escrow:
        row = Escrow(
            creator=config.creator,
            base_price=config.base_price,
            period_length=config.period_length,
            name=config.name,
            description=config.description,
            token_counter=0,
            total_subscribers=0,
            total_revenue=0,
            held_balance=0,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get(self, *, for_update: bool = False) -> Escrow:
        stmt = select(Escrow).where(Escrow.id == self.escrow_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = await self.session.scalar(stmt)
        if row is None:
            raise EscrowNotFoundError(f"Escrow {self.escrow_id} does not exist")
        return row

    async def load_engine(
        self,
        row: Escrow,
        ledger: LedgerRuntime,
        accounts: Iterable[str] = (),
    ) -> SubscriptionEscrow:
        prices = await self.tier_prices.prices()
        rows = await self.subscribers.get_many(accounts)
        return SubscriptionEscrow(
            config=CreatorConfig(
                creator=row.creator,
                base_price=int(row.base_price),
                period_length=row.period_length,
                name=row.name,
                description=row.description,
            ),
            ledger=ledger,
            tiers=TierPricingTable(prices),
            subscribers=SubscriberStore(to_record(subscriber) for subscriber in rows),
            analytics=AnalyticsAggregate(
                total_subscribers=row.total_subscribers,
                total_revenue=int(row.total_revenue),
            ),
            tokens=TokenSequence(row.token_counter),
        )

    async def store_engine(self, row: Escrow, escrow: SubscriptionEscrow, *, held_balance: int) -> None:
        row.base_price = escrow.config.base_price
        row.period_length = escrow.config.period_length
        row.token_counter = escrow.tokens.last_issued
        row.total_subscribers = escrow.stats.total_subscribers
        row.total_revenue = escrow.stats.total_revenue
        row.held_balance = held_balance
        await self.tier_prices.save(escrow.tiers.items())
        await self.subscribers.save(escrow.subscribers)
        await self.session.flush()
