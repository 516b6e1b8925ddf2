"""Registry audit schedules, runs and duplicate findings.

Revision ID: 0002_registry_audits
Revises: 0001_initial_schema
Create Date: 2026-09-28
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002_registry_audits"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "audit_schedule",
        sa.Column("registry", sa.Text(), primary_key=True),
        sa.Column("cadence_cron", sa.Text(), nullable=False),
        sa.Column("last_run_at", sa.DateTime(timezone=True)),
        sa.Column("next_due_at", sa.DateTime(timezone=True)),
        sa.Column("enabled", sa.Boolean(), server_default=sa.true()),
    )

    op.create_table(
        "audit_run",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("registry", sa.Text(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True)),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("item_count", sa.Integer(), server_default="0"),
        sa.Column("error_log", sa.Text()),
        sa.CheckConstraint("status IN ('queued','running','success','error')", name="audit_run_status_check"),
    )

    op.create_table(
        "duplicate_finding",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("run_id", sa.Integer(), sa.ForeignKey("audit_run.id", ondelete="CASCADE")),
        sa.Column("registry", sa.Text(), nullable=False),
        sa.Column("scope", sa.Text()),
        sa.Column("left_id", sa.Integer(), nullable=False),
        sa.Column("left_name", sa.Text(), nullable=False),
        sa.Column("right_id", sa.Integer(), nullable=False),
        sa.Column("right_name", sa.Text(), nullable=False),
        sa.Column("score", sa.Numeric(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("duplicate_finding")
    op.drop_table("audit_run")
    op.drop_table("audit_schedule")
