from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

import requests

from creator_direct.core.config import settings
from creator_direct.core.errors import EscrowError

logger = logging.getLogger(__name__)


class LedgerRuntime(Protocol):
    def current_caller(self) -> str: ...

    def current_height(self) -> int: ...

    def attached_amount(self) -> int: ...

    def held_balance(self) -> int: ...

    def transfer(self, to: str, amount: int) -> bool: ...


@dataclass(frozen=True, slots=True)
class CallContext:
    caller: str
    height: int
    attached_amount: int = 0


class InMemoryLedger:
    """Simulated runtime holding the escrow's balance in process memory.

    Invocations happen inside ``call()``: the attached value is credited to
    the held balance on entry and taken back again if the invocation raises
    an ``EscrowError``, the same way a rejected call is reverted on chain.
    """

    def __init__(self, *, caller: str = "", height: int = 0, balance: int = 0) -> None:
        self.caller = caller
        self.height = height
        self.value = 0
        self.balance = balance
        self.reject_transfers = False
        self.accounts: dict[str, int] = {}

    @contextlib.contextmanager
    def call(self, caller: str, *, value: int = 0) -> Iterator[InMemoryLedger]:
        previous = (self.caller, self.value)
        self.caller, self.value = caller, value
        self.balance += value
        try:
            yield self
        except EscrowError:
            self.balance -= value
            raise
        finally:
            self.caller, self.value = previous

    def advance(self, blocks: int = 1) -> int:
        self.height += blocks
        return self.height

    def current_caller(self) -> str:
        return self.caller

    def current_height(self) -> int:
        return self.height

    def attached_amount(self) -> int:
        return self.value

    def held_balance(self) -> int:
        return self.balance

    def transfer(self, to: str, amount: int) -> bool:
        if self.reject_transfers or amount > self.balance:
            return False
        self.balance -= amount
        self.accounts[to] = self.accounts.get(to, 0) + amount
        return True


class BlockClock:
    def __init__(self, genesis_timestamp: float, block_time_ms: int) -> None:
        if block_time_ms <= 0:
            raise ValueError("block_time_ms must be positive")
        self.genesis_timestamp = genesis_timestamp
        self.block_time_ms = block_time_ms

    @classmethod
    def from_settings(cls) -> BlockClock:
        return cls(settings.genesis_timestamp, settings.block_time_ms)

    def height_at(self, timestamp: float) -> int:
        elapsed_ms = int((timestamp - self.genesis_timestamp) * 1000)
        if elapsed_ms <= 0:
            return 0
        return elapsed_ms // self.block_time_ms

    def current_height(self) -> int:
        return self.height_at(time.time())


class PayoutClient:
    def __init__(self) -> None:
        self.base_url = settings.payout_gateway_url.rstrip("/")

    def send(self, to: str, amount: int, *, idempotency_key: str) -> bool:
        if not self.base_url:
            logger.warning("Payout gateway is not configured; refusing transfer to %s", to)
            return False

        headers = {"Idempotency-Key": idempotency_key}
        if settings.payout_gateway_token:
            headers["Authorization"] = f"Bearer {settings.payout_gateway_token}"

        try:
            response = requests.post(
                f"{self.base_url}/transfers",
                json={"to": to, "amount": str(amount)},
                headers=headers,
                timeout=settings.payout_timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException:
            logger.exception("Payout gateway rejected transfer to %s", to)
            return False
        return True


class GatewayLedger:
    """Per-request runtime used by the service.

    The held balance is read from the persisted escrow plus the verified
    payment attached to this call. Transfers only reserve funds: they are
    recorded in ``transfers`` and paid out by the service once the reservation
    has been committed.
    """

    def __init__(self, context: CallContext, stored_balance: int) -> None:
        self.context = context
        self.balance = stored_balance + context.attached_amount
        self.transfers: list[tuple[str, int]] = []

    def current_caller(self) -> str:
        return self.context.caller

    def current_height(self) -> int:
        return self.context.height

    def attached_amount(self) -> int:
        return self.context.attached_amount

    def held_balance(self) -> int:
        return self.balance

    def transfer(self, to: str, amount: int) -> bool:
        if amount > self.balance:
            return False
        self.balance -= amount
        self.transfers.append((to, amount))
        return True
