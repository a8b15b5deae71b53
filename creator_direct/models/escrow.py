from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from creator_direct.models.base import BalanceColumn, Base, TimestampedMixin


class Escrow(TimestampedMixin, Base):
    __tablename__ = "escrows"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    creator: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    base_price: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False)
    period_length: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    token_counter: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_subscribers: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False, default=0)
    held_balance: Mapped[Decimal] = mapped_column(BalanceColumn, nullable=False, default=0)
