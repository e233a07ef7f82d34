"""create household tables

Revision ID: 3c1d9a7e52f0
Revises:
Create Date: 2026-10-19 09:12:44.108233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1d9a7e52f0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "households",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_members_household_id", "members", ["household_id"], unique=False)
    op.create_table(
        "investments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("symbol", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("investment_type", sa.String(length=32), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=20, scale=6), nullable=False),
        sa.Column("average_price", sa.Numeric(precision=20, scale=6), nullable=False),
        sa.Column("current_price", sa.Numeric(precision=20, scale=6), nullable=True),
        sa.Column("currency", sa.String(length=12), nullable=True),
        sa.Column("source_system", sa.String(length=32), nullable=False),
        sa.Column("source_country", sa.String(length=8), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "member_id", "symbol", "investment_type", name="uq_investments_member_symbol_type"
        ),
    )
    op.create_index(
        "ix_investments_household_member",
        "investments",
        ["household_id", "member_id"],
        unique=False,
    )
    op.create_table(
        "stock_symbols",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("ticker", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("short_name", sa.String(length=120), nullable=True),
        sa.Column("isin", sa.String(length=12), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=True),
        sa.Column("currency_code", sa.String(length=12), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ticker"),
    )
    op.create_table(
        "fx_rates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("base_currency_code", sa.String(length=12), nullable=False),
        sa.Column("target_currency_code", sa.String(length=12), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rate", sa.Numeric(precision=24, scale=10), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "base_currency_code",
            "target_currency_code",
            "timestamp",
            "source",
            name="uq_fx_rates_unique_rate",
        ),
    )
    op.create_index(
        "ix_fx_rates_pair_timestamp_desc",
        "fx_rates",
        ["base_currency_code", "target_currency_code", sa.text("timestamp DESC")],
        unique=False,
    )
    op.create_table(
        "portfolio_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=True),
        sa.Column("taken_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("currency", sa.String(length=12), nullable=False),
        sa.Column("total_value", sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column("total_invested", sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column("investment_count", sa.Integer(), nullable=False),
        sa.Column("type_breakdown", sa.JSON(), nullable=False),
        sa.Column("platform_breakdown", sa.JSON(), nullable=False),
        sa.Column("top_investments", sa.JSON(), nullable=False),
        sa.Column("rates_source", sa.String(length=64), nullable=False),
        sa.Column("rates_stale", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_portfolio_snapshots_household_taken",
        "portfolio_snapshots",
        ["household_id", sa.text("taken_at DESC")],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_portfolio_snapshots_household_taken", table_name="portfolio_snapshots")
    op.drop_table("portfolio_snapshots")
    op.drop_index("ix_fx_rates_pair_timestamp_desc", table_name="fx_rates")
    op.drop_table("fx_rates")
    op.drop_table("stock_symbols")
    op.drop_index("ix_investments_household_member", table_name="investments")
    op.drop_table("investments")
    op.drop_index("ix_members_household_id", table_name="members")
    op.drop_table("members")
    op.drop_table("households")
