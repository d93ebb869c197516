"""create local tombstones

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17 14:03:12.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | Sequence[str] | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "local_tombstones",
        sa.Column("storage_key", sa.String(length=200), nullable=False),
        sa.Column("record_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("storage_key", "record_id"),
    )


def downgrade() -> None:
    op.drop_table("local_tombstones")
