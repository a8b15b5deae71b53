from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class EscrowEvent:
    event_type: ClassVar[str] = "escrow_event"

    def payload(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SubscriptionAccepted(EscrowEvent):
    event_type: ClassVar[str] = "subscription_accepted"

    subscriber: str
    periods: int
    new_expiry: int
    amount: int
    tier: int


@dataclass(frozen=True, slots=True)
class GiftAccepted(EscrowEvent):
    event_type: ClassVar[str] = "gift_accepted"

    gifter: str
    recipient: str
    periods: int
    new_expiry: int
    amount: int
    tier: int


@dataclass(frozen=True, slots=True)
class TokenIssued(EscrowEvent):
    event_type: ClassVar[str] = "token_issued"

    owner: str
    token_id: int


@dataclass(frozen=True, slots=True)
class Withdrawn(EscrowEvent):
    event_type: ClassVar[str] = "withdrawal"

    to: str
    amount: int


@dataclass(frozen=True, slots=True)
class ParamsUpdated(EscrowEvent):
    event_type: ClassVar[str] = "params_updated"

    price_per_period: int
    period_length: int


@dataclass(frozen=True, slots=True)
class TierPriceUpdated(EscrowEvent):
    event_type: ClassVar[str] = "tier_price_updated"

    tier: int
    price: int


@dataclass(frozen=True, slots=True)
class AutoRenewalToggled(EscrowEvent):
    event_type: ClassVar[str] = "auto_renewal_toggled"

    subscriber: str
    enabled: bool


class EventLog:
    """Events emitted by an escrow, in emission order, until drained."""

    def __init__(self) -> None:
        self._events: list[EscrowEvent] = []

    def emit(self, event: EscrowEvent) -> None:
        self._events.append(event)

    def drain(self) -> list[EscrowEvent]:
        events, self._events = self._events, []
        return events

    def __iter__(self) -> Iterator[EscrowEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
