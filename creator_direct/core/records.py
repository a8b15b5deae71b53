from __future__ import annotations

from bisect import bisect_right, insort
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from creator_direct.core.arithmetic import COUNTER_MAX, saturating_add


@dataclass(slots=True)
class CreatorConfig:
    creator: str
    base_price: int
    period_length: int
    name: str
    description: str


@dataclass(slots=True)
class SubscriberRecord:
    account: str
    expiry_height: int = 0
    has_pass: bool = False
    tier: int = 0
    auto_renewal_enabled: bool = False
    token_id: int | None = None


class TokenSequence:
    def __init__(self, last_issued: int = 0) -> None:
        self.last_issued = last_issued

    def next(self) -> int:
        self.last_issued = saturating_add(self.last_issued, 1, ceiling=COUNTER_MAX)
        return self.last_issued


class SubscriberStore:
    """Subscriber records keyed by account, plus the active-subscriber set.

    The active set keeps every account that ever subscribed, in enrolment
    order. A sorted list of the enrolled accounts' expiry heights answers
    "how many are active at height h" with a binary search, so expiry
    changes on enrolled records must go through ``set_expiry``.
    """

    def __init__(self, records: Iterable[SubscriberRecord] = ()) -> None:
        self._records: dict[str, SubscriberRecord] = {}
        self._enrolled: dict[str, None] = {}
        self._expiries: list[int] = []
        for record in records:
            self._records[record.account] = record
            if record.has_pass:
                self.enroll(record.account)

    def get(self, account: str) -> SubscriberRecord | None:
        return self._records.get(account)

    def get_or_create(self, account: str) -> SubscriberRecord:
        record = self._records.get(account)
        if record is None:
            record = SubscriberRecord(account=account)
            self._records[account] = record
        return record

    def expiry_of(self, account: str) -> int:
        record = self._records.get(account)
        return record.expiry_height if record is not None else 0

    def set_expiry(self, record: SubscriberRecord, expiry_height: int) -> None:
        if record.account in self._enrolled:
            self._expiries.pop(bisect_right(self._expiries, record.expiry_height) - 1)
            insort(self._expiries, expiry_height)
        record.expiry_height = expiry_height

    def is_enrolled(self, account: str) -> bool:
        return account in self._enrolled

    def enroll(self, account: str) -> bool:
        if account in self._enrolled:
            return False
        self._enrolled[account] = None
        insort(self._expiries, self.expiry_of(account))
        return True

    def count_active(self, height: int) -> int:
        return len(self._expiries) - bisect_right(self._expiries, height)

    def enrolled_accounts(self) -> list[str]:
        return list(self._enrolled)

    def __contains__(self, account: object) -> bool:
        return account in self._records

    def __iter__(self) -> Iterator[SubscriberRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
