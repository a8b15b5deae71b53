from __future__ import annotations

from typing import NamedTuple

from creator_direct.core.access import require_creator
from creator_direct.core.analytics import AnalyticsAggregate, AnalyticsSnapshot
from creator_direct.core.arithmetic import HEIGHT_MAX, saturating_add, saturating_mul
from creator_direct.core.errors import InsufficientFunds, TierNotConfigured, TransferFailed
from creator_direct.core.events import (
    AutoRenewalToggled,
    EventLog,
    GiftAccepted,
    ParamsUpdated,
    SubscriptionAccepted,
    TierPriceUpdated,
    TokenIssued,
    Withdrawn,
)
from creator_direct.core.ledger import LedgerRuntime
from creator_direct.core.pricing import TierPrices, TierPricingTable, validate_tier
from creator_direct.core.records import CreatorConfig, SubscriberStore, TokenSequence


class SubscriptionResult(NamedTuple):
    periods: int
    new_expiry: int


class SubscriptionInfo(NamedTuple):
    is_active: bool
    expiry: int
    now: int
    has_pass: bool


class EscrowParams(NamedTuple):
    price: int
    period: int
    name: str
    description: str
    creator: str


def _require_period(period_length: int) -> None:
    if period_length < 1:
        raise ValueError("period_length must be at least one height unit")


class SubscriptionEscrow:
    """Recurring-access escrow for a single creator.

    Payments extend a subscriber's expiry height by whole periods of the
    chosen tier and stay in the held balance until the creator withdraws
    them. Every mutating operation validates its inputs before it writes
    anything, so a raised ``EscrowError`` leaves the escrow untouched.
    """

    def __init__(
        self,
        *,
        config: CreatorConfig,
        ledger: LedgerRuntime,
        tiers: TierPricingTable | None = None,
        subscribers: SubscriberStore | None = None,
        analytics: AnalyticsAggregate | None = None,
        tokens: TokenSequence | None = None,
        events: EventLog | None = None,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.tiers = tiers if tiers is not None else TierPricingTable.from_base_price(config.base_price)
        self.subscribers = subscribers if subscribers is not None else SubscriberStore()
        self.stats = analytics if analytics is not None else AnalyticsAggregate()
        self.tokens = tokens if tokens is not None else TokenSequence()
        self.events = events if events is not None else EventLog()

    @classmethod
    def construct(
        cls,
        ledger: LedgerRuntime,
        base_price: int,
        period_length: int,
        name: str,
        description: str,
    ) -> SubscriptionEscrow:
        _require_period(period_length)
        config = CreatorConfig(
            creator=ledger.current_caller(),
            base_price=base_price,
            period_length=period_length,
            name=name,
            description=description,
        )
        return cls(config=config, ledger=ledger)

    # Subscriptions

    def subscribe(self) -> SubscriptionResult:
        return self.subscribe_with_tier(0)

    def subscribe_with_tier(self, tier: int) -> SubscriptionResult:
        return self._process(
            self.ledger.current_caller(),
            tier,
            self.ledger.attached_amount(),
            self.ledger.current_height(),
        )

    def gift_subscription(self, recipient: str, tier: int) -> SubscriptionResult:
        amount = self.ledger.attached_amount()
        result = self._process(recipient, tier, amount, self.ledger.current_height())
        self.events.emit(
            GiftAccepted(
                gifter=self.ledger.current_caller(),
                recipient=recipient,
                periods=result.periods,
                new_expiry=result.new_expiry,
                amount=amount,
                tier=tier,
            )
        )
        return result

    def _process(self, subscriber: str, tier: int, amount: int, now: int) -> SubscriptionResult:
        validate_tier(tier)
        price = self.tiers.price_of(tier)
        if price == 0:
            raise TierNotConfigured(f"Tier {tier} has no price configured")
        if amount < price:
            raise InsufficientFunds(f"Tier {tier} costs {price} per period; received {amount}")

        # Any remainder beyond whole periods stays with the escrow as revenue.
        periods = min(amount // price, HEIGHT_MAX)
        base = max(self.subscribers.expiry_of(subscriber), now)
        added = saturating_mul(self.config.period_length, periods, ceiling=HEIGHT_MAX)
        new_expiry = saturating_add(base, added, ceiling=HEIGHT_MAX)

        record = self.subscribers.get_or_create(subscriber)
        self.subscribers.set_expiry(record, new_expiry)
        record.tier = tier
        self.stats.record_payment(amount)

        if not record.has_pass:
            record.has_pass = True
            self.stats.record_new_subscriber()
            record.token_id = self.tokens.next()
            self.events.emit(TokenIssued(owner=subscriber, token_id=record.token_id))

        self.subscribers.enroll(subscriber)
        self.events.emit(
            SubscriptionAccepted(
                subscriber=subscriber,
                periods=periods,
                new_expiry=new_expiry,
                amount=amount,
                tier=tier,
            )
        )
        return SubscriptionResult(periods, new_expiry)

    # Subscriber queries

    def get_subscription_info(self, account: str) -> SubscriptionInfo:
        now = self.ledger.current_height()
        record = self.subscribers.get(account)
        if record is None:
            return SubscriptionInfo(False, 0, now, False)
        return SubscriptionInfo(record.expiry_height > now, record.expiry_height, now, record.has_pass)

    def is_active(self, account: str) -> bool:
        return self.subscribers.expiry_of(account) > self.ledger.current_height()

    def get_token(self, account: str) -> int | None:
        record = self.subscribers.get(account)
        return record.token_id if record is not None else None

    def get_subscriber_tier(self, account: str) -> int:
        record = self.subscribers.get(account)
        return record.tier if record is not None else 0

    def set_auto_renewal(self, enabled: bool) -> None:
        # Advisory only: nothing in the escrow renews on the subscriber's behalf.
        caller = self.ledger.current_caller()
        self.subscribers.get_or_create(caller).auto_renewal_enabled = enabled
        self.events.emit(AutoRenewalToggled(subscriber=caller, enabled=enabled))

    def is_auto_renewal_enabled(self, account: str) -> bool:
        record = self.subscribers.get(account)
        return record.auto_renewal_enabled if record is not None else False

    # Creator parameters and pricing

    def get_params(self) -> EscrowParams:
        return EscrowParams(
            price=self.config.base_price,
            period=self.config.period_length,
            name=self.config.name,
            description=self.config.description,
            creator=self.config.creator,
        )

    def update_params(self, price: int, period: int) -> None:
        require_creator(self.config, self.ledger.current_caller())
        _require_period(period)
        self.config.base_price = price
        self.config.period_length = period
        self.events.emit(ParamsUpdated(price_per_period=price, period_length=period))

    def get_tier_price(self, tier: int) -> int:
        return self.tiers.price_of(tier)

    def get_all_tier_prices(self) -> TierPrices:
        return self.tiers.as_tuple()

    def update_tier_price(self, tier: int, price: int) -> None:
        require_creator(self.config, self.ledger.current_caller())
        self.tiers.set_price(tier, price)
        self.events.emit(TierPriceUpdated(tier=tier, price=price))

    # Funds and analytics

    def withdraw(self) -> int:
        require_creator(self.config, self.ledger.current_caller())
        balance = self.ledger.held_balance()
        if balance == 0:
            return 0
        if not self.ledger.transfer(self.config.creator, balance):
            raise TransferFailed(f"Transfer of {balance} to the creator was rejected")
        self.events.emit(Withdrawn(to=self.config.creator, amount=balance))
        return balance

    def analytics(self) -> AnalyticsSnapshot:
        return self.stats.snapshot(self.subscribers.count_active(self.ledger.current_height()))
