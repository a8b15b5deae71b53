from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from creator_direct.core.arithmetic import BALANCE_MAX, COUNTER_MAX, saturating_add


class AnalyticsSnapshot(NamedTuple):
    total_subscribers: int
    total_revenue: int
    active_count: int


@dataclass(slots=True)
class AnalyticsAggregate:
    """Lifetime counters for the creator dashboard.

    ``total_revenue`` counts every accepted payment and is never reduced by
    withdrawals; the held balance is tracked by the ledger runtime instead.
    """

    total_subscribers: int = 0
    total_revenue: int = 0

    def record_payment(self, amount: int) -> None:
        self.total_revenue = saturating_add(self.total_revenue, amount, ceiling=BALANCE_MAX)

    def record_new_subscriber(self) -> None:
        self.total_subscribers = saturating_add(self.total_subscribers, 1, ceiling=COUNTER_MAX)

    def snapshot(self, active_count: int) -> AnalyticsSnapshot:
        return AnalyticsSnapshot(self.total_subscribers, self.total_revenue, active_count)
