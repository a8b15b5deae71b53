"""create escrow schema

Revision ID: 20261019_00
Revises: 
Create Date: 2026-10-19 10:15:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_00"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "escrows",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("creator", sa.String(length=128), nullable=False),
        sa.Column("base_price", sa.Numeric(39, 0), nullable=False),
        sa.Column("period_length", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2048), nullable=False),
        sa.Column("token_counter", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_subscribers", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_revenue", sa.Numeric(39, 0), nullable=False, server_default="0"),
        sa.Column("held_balance", sa.Numeric(39, 0), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_escrows_creator", "escrows", ["creator"], unique=False)

    op.create_table(
        "tier_prices",
        sa.Column("tier", sa.SmallInteger(), nullable=False),
        sa.Column("price", sa.Numeric(39, 0), nullable=False),
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("escrow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escrow_id"], ["escrows.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("escrow_id", "tier", name="uq_tier_prices_escrow_tier"),
    )
    op.create_index("ix_tier_prices_escrow_id", "tier_prices", ["escrow_id"], unique=False)

    op.create_table(
        "subscribers",
        sa.Column("account", sa.String(length=128), nullable=False),
        sa.Column("expiry_height", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("has_pass", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tier", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("auto_renewal_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("token_id", sa.BigInteger(), nullable=True),
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("escrow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escrow_id"], ["escrows.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("escrow_id", "account", name="uq_subscribers_escrow_account"),
        sa.UniqueConstraint("escrow_id", "token_id", name="uq_subscribers_escrow_token"),
    )
    op.create_index("ix_subscribers_escrow_id", "subscribers", ["escrow_id"], unique=False)
    op.create_index(
        "ix_subscribers_escrow_expiry",
        "subscribers",
        ["escrow_id", "expiry_height"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_subscribers_escrow_expiry", table_name="subscribers")
    op.drop_index("ix_subscribers_escrow_id", table_name="subscribers")
    op.drop_table("subscribers")

    op.drop_index("ix_tier_prices_escrow_id", table_name="tier_prices")
    op.drop_table("tier_prices")

    op.drop_index("ix_escrows_creator", table_name="escrows")
    op.drop_table("escrows")
