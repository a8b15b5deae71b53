from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from creator_direct.models.base import BalanceColumn, EscrowScopedBase


class Payment(EscrowScopedBase):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("reference", name="uq_payments_reference"),
        Index("ix_payments_escrow_payer", "escrow_id", "payer"),
    )

    reference: Mapped[str] = mapped_column(String(255), nullable=False)
    payer: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False)
    consumed: Mapped[bool] = mapped_column(nullable=False, default=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
