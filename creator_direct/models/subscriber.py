from __future__ import annotations

from sqlalchemy import BigInteger, Index, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from creator_direct.models.base import EscrowScopedBase


class Subscriber(EscrowScopedBase):
    __tablename__ = "subscribers"
    __table_args__ = (
        UniqueConstraint("escrow_id", "account", name="uq_subscribers_escrow_account"),
        UniqueConstraint("escrow_id", "token_id", name="uq_subscribers_escrow_token"),
        Index("ix_subscribers_escrow_expiry", "escrow_id", "expiry_height"),
    )

    account: Mapped[str] = mapped_column(String(128), nullable=False)
    expiry_height: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    has_pass: Mapped[bool] = mapped_column(nullable=False, default=False)
    tier: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    auto_renewal_enabled: Mapped[bool] = mapped_column(nullable=False, default=False)
    token_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
