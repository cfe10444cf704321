"""create pagerduty_settings

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-06 09:05:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from dutysync.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0003"
down_revision: str | Sequence[str] | None = "0002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "pagerduty_settings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("value", sa.Text(), server_default="", nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_pagerduty_settings")),
    )


def downgrade() -> None:
    op.drop_table("pagerduty_settings")
