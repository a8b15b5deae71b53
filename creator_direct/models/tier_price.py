from __future__ import annotations

from decimal import Decimal

from sqlalchemy import SmallInteger, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from creator_direct.models.base import BalanceColumn, EscrowScopedBase


class TierPrice(EscrowScopedBase):
    __tablename__ = "tier_prices"
    __table_args__ = (
        UniqueConstraint("escrow_id", "tier", name="uq_tier_prices_escrow_tier"),
    )

    tier: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    price: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False, default=0)
