from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from creator_direct.models.base import BalanceColumn, EscrowScopedBase

WITHDRAWAL_PENDING = "pending"
WITHDRAWAL_SETTLED = "settled"


class Withdrawal(EscrowScopedBase):
    """A payout reserved against the held balance.

    The row id doubles as the gateway idempotency key, so retrying a pending
    withdrawal can never pay it out twice.
    """

    __tablename__ = "withdrawals"
    __table_args__ = (Index("ix_withdrawals_escrow_status", "escrow_id", "status"),)

    recipient: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=WITHDRAWAL_PENDING)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
