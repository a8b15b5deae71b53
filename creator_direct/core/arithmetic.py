from __future__ import annotations

from typing import Final

HEIGHT_MAX: Final[int] = 2**32 - 1
BALANCE_MAX: Final[int] = 2**128 - 1
COUNTER_MAX: Final[int] = 2**64 - 1


def saturating_add(left: int, right: int, *, ceiling: int) -> int:
    return min(left + right, ceiling)


def saturating_mul(left: int, right: int, *, ceiling: int) -> int:
    return min(left * right, ceiling)
