"""create crisis simulation tables

Revision ID: 4c8d2e1f7a90
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c8d2e1f7a90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False),
        sa.Column("risk_index", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "stocks",
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("ticker", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sector", sa.String(), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("stock_id"),
        sa.UniqueConstraint("ticker"),
    )
    op.create_index("ix_stocks_sector", "stocks", ["sector"])

    op.create_table(
        "simulation_runs",
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("run_date", sa.Date(), nullable=False),
        sa.Column("current_day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("run_id"),
    )
    op.create_index("ix_simulation_runs_is_active", "simulation_runs", ["is_active"])

    op.create_table(
        "crisis_events",
        sa.Column("crisis_id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("sector", sa.String(), nullable=False),
        sa.Column("impact_strength", sa.Numeric(6, 4), nullable=False),
        sa.Column("start_day", sa.Integer(), nullable=False),
        sa.Column("end_day", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["simulation_runs.run_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("crisis_id"),
    )
    op.create_index("ix_crisis_events_run_id", "crisis_events", ["run_id"])

    op.create_table(
        "simulated_prices",
        sa.Column("price_id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("day_index", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("priced_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["simulation_runs.run_id"],
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["stock_id"],
            ["stocks.stock_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("price_id"),
        sa.UniqueConstraint(
            "run_id",
            "stock_id",
            "day_index",
            name="uq_simulated_price_run_stock_day",
        ),
    )
    op.create_index(
        "ix_simulated_price_run_stock",
        "simulated_prices",
        ["run_id", "stock_id"],
    )

    op.create_table(
        "transactions",
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "executed_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["stock_id"], ["stocks.stock_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["simulation_runs.run_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("transaction_id"),
    )
    op.create_index("ix_transactions_run_id", "transactions", ["run_id"])
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])

    op.create_table(
        "portfolio_holdings",
        sa.Column("holding_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("avg_buy_price", sa.Numeric(14, 4), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["stock_id"], ["stocks.stock_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("holding_id"),
        sa.UniqueConstraint(
            "user_id",
            "stock_id",
            name="uq_portfolio_holding_user_stock",
        ),
    )
    op.create_index(
        "ix_portfolio_holding_user_id",
        "portfolio_holdings",
        ["user_id"],
    )

    op.create_table(
        "behavior_events",
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("crisis_id", sa.Integer(), nullable=True),
        sa.Column("reaction_time_ms", sa.BigInteger(), nullable=True),
        sa.Column("trade_type", sa.String(), nullable=False),
        sa.Column("risk_delta", sa.Float(), nullable=False, server_default="0"),
        sa.Column(
            "recorded_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["stock_id"], ["stocks.stock_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["transaction_id"],
            ["transactions.transaction_id"],
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["crisis_id"],
            ["crisis_events.crisis_id"],
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("event_id"),
        sa.UniqueConstraint("transaction_id"),
    )
    op.create_index("ix_behavior_events_user_id", "behavior_events", ["user_id"])

    op.create_table(
        "weekly_summaries",
        sa.Column("summary_id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("sector_impact", sa.JSON(), nullable=False),
        sa.Column("avg_reaction_time_hours", sa.Float(), nullable=False),
        sa.Column("total_trades", sa.Integer(), nullable=False),
        sa.Column("panic_sells", sa.Integer(), nullable=False),
        sa.Column("fomo_buys", sa.Integer(), nullable=False),
        sa.Column("risk_index_change", sa.Float(), nullable=False),
        sa.Column("top_traders", sa.JSON(), nullable=False),
        sa.Column("crisis_timeline", sa.JSON(), nullable=False),
        sa.Column("narrative", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["simulation_runs.run_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("summary_id"),
    )
    op.create_index("ix_weekly_summaries_run_id", "weekly_summaries", ["run_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_weekly_summaries_run_id", table_name="weekly_summaries")
    op.drop_table("weekly_summaries")
    op.drop_index("ix_behavior_events_user_id", table_name="behavior_events")
    op.drop_table("behavior_events")
    op.drop_index("ix_portfolio_holding_user_id", table_name="portfolio_holdings")
    op.drop_table("portfolio_holdings")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_index("ix_transactions_run_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_simulated_price_run_stock", table_name="simulated_prices")
    op.drop_table("simulated_prices")
    op.drop_index("ix_crisis_events_run_id", table_name="crisis_events")
    op.drop_table("crisis_events")
    op.drop_index("ix_simulation_runs_is_active", table_name="simulation_runs")
    op.drop_table("simulation_runs")
    op.drop_index("ix_stocks_sector", table_name="stocks")
    op.drop_table("stocks")
    op.drop_table("users")
