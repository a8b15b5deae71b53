"""add payments and withdrawals

Revision ID: 20261019_01
Revises: 20261019_00
Create Date: 2026-10-19 16:40:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = "20261019_00"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "payments",
        sa.Column("reference", sa.String(length=255), nullable=False),
        sa.Column("payer", sa.String(length=128), nullable=False),
        sa.Column("amount", sa.Numeric(39, 0), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("escrow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escrow_id"], ["escrows.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("reference", name="uq_payments_reference"),
    )
    op.create_index("ix_payments_escrow_id", "payments", ["escrow_id"], unique=False)
    op.create_index("ix_payments_escrow_payer", "payments", ["escrow_id", "payer"], unique=False)

    op.create_table(
        "withdrawals",
        sa.Column("recipient", sa.String(length=128), nullable=False),
        sa.Column("amount", sa.Numeric(39, 0), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("escrow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escrow_id"], ["escrows.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_withdrawals_escrow_id", "withdrawals", ["escrow_id"], unique=False)
    op.create_index("ix_withdrawals_escrow_status", "withdrawals", ["escrow_id", "status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_withdrawals_escrow_status", table_name="withdrawals")
    op.drop_index("ix_withdrawals_escrow_id", table_name="withdrawals")
    op.drop_table("withdrawals")

    op.drop_index("ix_payments_escrow_payer", table_name="payments")
    op.drop_index("ix_payments_escrow_id", table_name="payments")
    op.drop_table("payments")
