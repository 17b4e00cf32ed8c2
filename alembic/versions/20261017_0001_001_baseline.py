"""Baseline schema: stocks, analysis output, catalysts, history, performance.

Revision ID: 001_baseline
Revises: 
Create Date: 2026-10-17

Creates the full schema for a new database.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # STOCKS
    # ==========================================================================

    op.create_table(
        "stocks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ticker", sa.String(10), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("sector", sa.String(100)),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("ticker", name="uq_stocks_ticker"),
    )
    op.create_index("idx_stocks_active", "stocks", ["is_active"])

    # ==========================================================================
    # ANALYSIS OUTPUT
    # ==========================================================================

    op.create_table(
        "agent_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "stock_id",
            sa.Integer(),
            sa.ForeignKey("stocks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("agent_name", sa.String(20), nullable=False),
        sa.Column("score", sa.Numeric(6, 2), nullable=False),
        sa.Column("weight", sa.Numeric(4, 3), nullable=False),
        sa.Column("reasoning", sa.Text()),
        sa.Column("key_metrics", postgresql.JSONB()),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("score >= -100 AND score <= 100", name="ck_agent_scores_score_range"),
        sa.CheckConstraint("weight > 0 AND weight <= 1", name="ck_agent_scores_weight_range"),
        sa.CheckConstraint(
            "agent_name IN ('fundamental', 'technical', 'sentiment', 'macro', 'insider', 'catalyst')",
            name="ck_agent_scores_agent_name",
        ),
    )
    op.create_index("idx_agent_scores_stock", "agent_scores", ["stock_id"])

    op.create_table(
        "predictions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "stock_id",
            sa.Integer(),
            sa.ForeignKey("stocks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("final_score", sa.Numeric(6, 2), nullable=False),
        sa.Column("recommendation", sa.String(4), nullable=False),
        sa.Column("confidence", sa.String(6), nullable=False),
        sa.Column("holding_period", sa.String(50)),
        sa.Column("debate_summary", sa.Text()),
        sa.Column("risk_factors", postgresql.JSONB()),
        sa.Column("urgency", sa.String(8)),
        sa.Column("price_at_prediction", sa.Numeric(12, 4)),
        sa.Column("predicted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("evaluation_5d", postgresql.JSONB()),
        sa.Column("evaluation_10d", postgresql.JSONB()),
        sa.Column("evaluation_20d", postgresql.JSONB()),
        sa.Column("price_at_evaluation", sa.Numeric(12, 4)),
        sa.Column("return_pct", sa.Numeric(8, 2)),
        sa.Column("actual_direction", sa.String(4)),
        sa.Column("directional_accuracy", sa.Boolean()),
        sa.Column("evaluated_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("stock_id", name="uq_predictions_stock_id"),
        sa.CheckConstraint(
            "recommendation IN ('BUY', 'HOLD', 'SELL')", name="ck_predictions_recommendation"
        ),
        sa.CheckConstraint(
            "confidence IN ('LOW', 'MEDIUM', 'HIGH')", name="ck_predictions_confidence"
        ),
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_predictions_predicted_at "
        "ON predictions (predicted_at DESC)"
    )

    # ==========================================================================
    # CATALYSTS
    # ==========================================================================

    op.create_table(
        "catalyst_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "stock_id",
            sa.Integer(),
            sa.ForeignKey("stocks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(40), nullable=False),
        sa.Column("urgency", sa.String(8), nullable=False),
        sa.Column("impact_on_score", sa.Numeric(6, 2)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("source_url", sa.Text()),
        sa.Column("detected_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("triggered_reanalysis", sa.Boolean()),
        sa.Column("skip_reason", sa.Text()),
        sa.CheckConstraint(
            "urgency IN ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL')", name="ck_catalyst_events_urgency"
        ),
    )
    op.create_index(
        "idx_catalyst_events_stock_detected", "catalyst_events", ["stock_id", "detected_at"]
    )
    # Partial index for the monitor's pending scan
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_catalyst_events_pending "
        "ON catalyst_events (detected_at) WHERE triggered_reanalysis IS NULL"
    )

    # ==========================================================================
    # HISTORY & PERFORMANCE
    # ==========================================================================

    op.create_table(
        "recommendation_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "stock_id",
            sa.Integer(),
            sa.ForeignKey("stocks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("previous_recommendation", sa.String(10)),
        sa.Column("new_recommendation", sa.String(10), nullable=False),
        sa.Column("previous_score", sa.Numeric(6, 2)),
        sa.Column("new_score", sa.Numeric(6, 2)),
        sa.Column("change_reason", sa.Text(), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_recommendation_history_stock_changed",
        "recommendation_history",
        ["stock_id", "changed_at"],
    )

    op.create_table(
        "agent_performance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agent_name", sa.String(20), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_predictions", sa.Integer(), server_default="0"),
        sa.Column("correct_predictions", sa.Integer(), server_default="0"),
        sa.Column("accuracy_rate", sa.Numeric(5, 2)),
        sa.Column("avg_score", sa.Numeric(6, 2)),
        sa.Column("calculated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("agent_name", name="uq_agent_performance_agent"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("agent_performance")
    op.drop_index("idx_recommendation_history_stock_changed", table_name="recommendation_history")
    op.drop_table("recommendation_history")
    op.execute("DROP INDEX IF EXISTS idx_catalyst_events_pending")
    op.drop_index("idx_catalyst_events_stock_detected", table_name="catalyst_events")
    op.drop_table("catalyst_events")
    op.execute("DROP INDEX IF EXISTS idx_predictions_predicted_at")
    op.drop_table("predictions")
    op.drop_index("idx_agent_scores_stock", table_name="agent_scores")
    op.drop_table("agent_scores")
    op.drop_index("idx_stocks_active", table_name="stocks")
    op.drop_table("stocks")
