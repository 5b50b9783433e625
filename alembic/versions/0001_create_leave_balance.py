"""create leave_balance

Revision ID: 0001
Revises:
Create Date: 2025-01-02 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "leave_balance",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("annual_entitlement", sa.Integer(), nullable=False),
        sa.Column("used_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("remaining_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "year", name="uq_leave_balance_employee_year"),
        sa.CheckConstraint("used_days >= 0", name="ck_leave_balance_used_days_non_negative"),
        sa.CheckConstraint("remaining_days >= 0", name="ck_leave_balance_remaining_days_non_negative"),
    )
    op.create_index("ix_leave_balance_employee_id", "leave_balance", ["employee_id"])
    op.create_index("ix_leave_balance_year", "leave_balance", ["year"])


def downgrade() -> None:
    op.drop_index("ix_leave_balance_year", table_name="leave_balance")
    op.drop_index("ix_leave_balance_employee_id", table_name="leave_balance")
    op.drop_table("leave_balance")
