"""create wealth tables

Revision ID: create_wealth_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "create_wealth_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "portfolios",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("total_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_invested", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_gain", sa.Numeric(18, 2), nullable=False),
        sa.Column("gain_percent", sa.Numeric(12, 4), nullable=False),
        sa.Column("benchmark_ratio", sa.Numeric(12, 4), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_portfolios_owner_id", "portfolios", ["owner_id"])

    op.create_table(
        "positions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("instrument_type", sa.String(length=60), nullable=False),
        sa.Column("ticker", sa.String(length=20), nullable=True),
        sa.Column("quantity", sa.Numeric(20, 8), nullable=True),
        sa.Column("purchase_price", sa.Numeric(18, 8), nullable=True),
        sa.Column("current_price", sa.Numeric(18, 8), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("current_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_invested", sa.Numeric(18, 2), nullable=False),
        sa.Column("gain_percent", sa.Numeric(12, 4), nullable=False),
        sa.Column("maturity_date", sa.Date(), nullable=True),
        sa.Column("source", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["portfolio_id"], ["portfolios.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_positions_id", "positions", ["id"])
    op.create_index("idx_positions_portfolio", "positions", ["portfolio_id"])
    op.create_index("idx_positions_ticker", "positions", ["ticker"])

    op.create_table(
        "movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=True),
        sa.Column("position_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("asset_name", sa.String(length=200), nullable=False),
        sa.Column("ticker", sa.String(length=20), nullable=True),
        sa.Column("asset_type", sa.String(length=60), nullable=True),
        sa.Column("quantity", sa.Numeric(20, 8), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 8), nullable=False),
        sa.Column("total_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("movement_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["portfolio_id"], ["portfolios.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["position_id"], ["positions.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_movements_portfolio", "movements", ["portfolio_id"])
    op.create_index("idx_movements_position", "movements", ["position_id"])

    op.create_table(
        "historical_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=False),
        sa.Column("total_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_invested", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_gain", sa.Numeric(18, 2), nullable=False),
        sa.Column("gain_percent", sa.Numeric(12, 4), nullable=False),
        sa.Column("rate_a_accumulated", sa.Numeric(12, 6), nullable=True),
        sa.Column("rate_b_accumulated", sa.Numeric(12, 6), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["portfolio_id"], ["portfolios.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("portfolio_id", "date", name="uq_snapshot_portfolio_date"),
    )
    op.create_index("ix_historical_snapshots_id", "historical_snapshots", ["id"])
    op.create_index("idx_snapshots_date", "historical_snapshots", ["date"])
    op.create_index("idx_snapshots_portfolio", "historical_snapshots", ["portfolio_id"])

    op.create_table(
        "global_assets",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("original_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("value_reporting", sa.Numeric(28, 10), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(18, 8), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_global_assets_owner_id", "global_assets", ["owner_id"])


def downgrade():
    op.drop_index("ix_global_assets_owner_id", table_name="global_assets")
    op.drop_table("global_assets")
    op.drop_index("idx_snapshots_portfolio", table_name="historical_snapshots")
    op.drop_index("idx_snapshots_date", table_name="historical_snapshots")
    op.drop_index("ix_historical_snapshots_id", table_name="historical_snapshots")
    op.drop_table("historical_snapshots")
    op.drop_index("idx_movements_position", table_name="movements")
    op.drop_index("idx_movements_portfolio", table_name="movements")
    op.drop_table("movements")
    op.drop_index("idx_positions_ticker", table_name="positions")
    op.drop_index("idx_positions_portfolio", table_name="positions")
    op.drop_index("ix_positions_id", table_name="positions")
    op.drop_table("positions")
    op.drop_index("ix_portfolios_owner_id", table_name="portfolios")
    op.drop_table("portfolios")
