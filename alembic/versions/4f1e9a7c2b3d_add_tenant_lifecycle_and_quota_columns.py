"""add lifecycle state, quota and usage columns to tenants

Revision ID: 4f1e9a7c2b3d
Revises: 
Create Date: 2026-10-19 09:12:44.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '4f1e9a7c2b3d'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_BOOL_COLUMNS = ("student_access_disabled", "billing_exempt")
_LIMIT_COLUMNS = ("sms_limit", "email_limit", "streaming_limit")
_USAGE_COLUMNS = ("sms_usage", "email_usage", "streaming_usage")


def upgrade() -> None:
    with op.batch_alter_table("tenants") as batch:
        batch.add_column(
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        )
        batch.add_column(
            sa.Column("tier", sa.String(length=20), nullable=False, server_default="launch"),
        )
        # Replaced by status and tier
        batch.drop_column("is_active")
        batch.drop_column("plan")
        batch.add_column(sa.Column("archived_at", sa.DateTime(), nullable=True))
        batch.add_column(sa.Column("grace_period_ends_at", sa.DateTime(), nullable=True))
        for name in _BOOL_COLUMNS:
            batch.add_column(
                sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false()),
            )
        for name in _LIMIT_COLUMNS:
            batch.add_column(sa.Column(name, sa.Integer(), nullable=True))
        for name in _USAGE_COLUMNS:
            batch.add_column(
                sa.Column(name, sa.Integer(), nullable=False, server_default="0"),
            )

    # Audit history survives tenant deletion, so the link must be nullable
    with op.batch_alter_table("audit_logs") as batch:
        batch.alter_column("tenant_id", existing_type=sa.Uuid(), nullable=True)


def downgrade() -> None:
    with op.batch_alter_table("audit_logs") as batch:
        batch.alter_column("tenant_id", existing_type=sa.Uuid(), nullable=False)

    with op.batch_alter_table("tenants") as batch:
        for name in (*_USAGE_COLUMNS, *_LIMIT_COLUMNS, *_BOOL_COLUMNS):
            batch.drop_column(name)
        batch.drop_column("grace_period_ends_at")
        batch.drop_column("archived_at")
        batch.add_column(
            sa.Column("plan", sa.String(length=50), nullable=False, server_default="free"),
        )
        batch.add_column(
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        batch.drop_column("tier")
        batch.drop_column("status")
