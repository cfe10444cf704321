"""create pagerduty_entity_mapping

Revision ID: 0001
Revises:
Create Date: 2026-09-28 10:12:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from dutysync.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "pagerduty_entity_mapping",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("service_id", sa.String(), nullable=False),
        sa.Column("entity_ref", sa.String(), server_default="", nullable=False),
        sa.Column("integration_key", sa.String(), server_default="", nullable=False),
        sa.Column("processed_date", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_pagerduty_entity_mapping")),
        sa.UniqueConstraint(
            "service_id", name=op.f("uq_pagerduty_entity_mapping_service_id")
        ),
    )


def downgrade() -> None:
    op.drop_table("pagerduty_entity_mapping")
