"""create local store tables

Revision ID: 0001
Revises:
Create Date: 2026-09-28 10:12:41.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from todosync.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "local_records",
        sa.Column("storage_key", sa.String(length=200), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("modified_at", UTCDateTime(), nullable=True),
        sa.Column("remote_handle", sa.String(length=512), nullable=True),
        sa.PrimaryKeyConstraint("storage_key", "id"),
    )
    op.create_table(
        "local_selection",
        sa.Column("storage_key", sa.String(length=200), nullable=False),
        sa.Column("record_id", sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint("storage_key"),
    )


def downgrade() -> None:
    op.drop_table("local_selection")
    op.drop_table("local_records")
