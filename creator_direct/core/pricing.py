from __future__ import annotations

from collections.abc import Mapping
from typing import Final, NamedTuple

from creator_direct.core.arithmetic import BALANCE_MAX, saturating_mul
from creator_direct.core.errors import InvalidTier

MAX_TIER: Final[int] = 2
TIERS: Final[tuple[int, ...]] = tuple(range(MAX_TIER + 1))


class TierPrices(NamedTuple):
    price0: int
    price1: int
    price2: int


def validate_tier(tier: int) -> int:
    if tier < 0 or tier > MAX_TIER:
        raise InvalidTier(f"Invalid tier {tier}; expected 0 (base), 1 or 2")
    return tier


class TierPricingTable:
    """Per-period price for each of the three subscription tiers.

    A slot holding 0 is unconfigured: subscriptions to it are rejected.
    """

    def __init__(self, prices: Mapping[int, int] | None = None) -> None:
        self._prices: dict[int, int] = {}
        for tier, price in (prices or {}).items():
            self._prices[validate_tier(tier)] = price

    @classmethod
    def from_base_price(cls, base_price: int) -> TierPricingTable:
        return cls({tier: saturating_mul(base_price, tier + 1, ceiling=BALANCE_MAX) for tier in TIERS})

    def price_of(self, tier: int) -> int:
        return self._prices.get(tier, 0)

    def set_price(self, tier: int, amount: int) -> None:
        self._prices[validate_tier(tier)] = amount

    def as_tuple(self) -> TierPrices:
        return TierPrices(*(self.price_of(tier) for tier in TIERS))

    def items(self) -> list[tuple[int, int]]:
        return [(tier, self.price_of(tier)) for tier in TIERS]
