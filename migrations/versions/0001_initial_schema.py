"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

daily_metrics           — one row per note date (unique), replaced on re-extraction
procrastination_events  — events grouped by source tag, replaced per source
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- daily_metrics ---
    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(16), nullable=True),
        sa.Column("work_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("procrastination_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dispersion_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mindfulness_moments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meditation_time", sa.Float(), nullable=True),
        sa.Column("meditation_quality", sa.Float(), nullable=True),
        sa.Column("meditation_comment", sa.Text(), nullable=True),
        sa.Column("sleep_quality", sa.Float(), nullable=True),
        sa.Column("sleep_comment", sa.Text(), nullable=True),
        sa.Column("mood_score", sa.Float(), nullable=True),
        sa.Column("mood_sentiment", sa.String(32), nullable=False, server_default=""),
        sa.Column("mood_comment", sa.Text(), nullable=True),
        sa.Column("is_workday", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("textual_info", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("raw_extraction_output", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_daily_metrics_id", "daily_metrics", ["id"])
    op.create_index("ix_daily_metrics_date", "daily_metrics", ["date"], unique=True)

    # --- procrastination_events ---
    op.create_table(
        "procrastination_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("time", sa.String(16), nullable=True),
        sa.Column("type", sa.String(32), nullable=False, server_default="Procrastination"),
        sa.Column("duration_minutes", sa.Float(), nullable=False, server_default="0"),
        sa.Column("activity", sa.Text(), nullable=False, server_default=""),
        sa.Column("trigger", sa.Text(), nullable=False, server_default=""),
        sa.Column("feeling", sa.Text(), nullable=False, server_default=""),
        sa.Column("action_taken", sa.Text(), nullable=False, server_default=""),
        sa.Column("source", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_procrastination_events_id", "procrastination_events", ["id"])
    op.create_index("ix_procrastination_events_date", "procrastination_events", ["date"])
    op.create_index("ix_procrastination_events_source", "procrastination_events", ["source"])


def downgrade() -> None:
    op.drop_index("ix_procrastination_events_source", table_name="procrastination_events")
    op.drop_index("ix_procrastination_events_date", table_name="procrastination_events")
    op.drop_index("ix_procrastination_events_id", table_name="procrastination_events")
    op.drop_table("procrastination_events")

    op.drop_index("ix_daily_metrics_date", table_name="daily_metrics")
    op.drop_index("ix_daily_metrics_id", table_name="daily_metrics")
    op.drop_table("daily_metrics")
