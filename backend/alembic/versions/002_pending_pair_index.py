"""Enforce one pending request per unordered account pair at the database level.

Revision ID: 002_pending_pair_index
Revises: 001_initial
Create Date: 2026-10-18

Two requests sent concurrently in opposite directions both pass the
application-level "no pending request between us" check. pair_key stores the
sorted "a:b" of the pair so a partial unique index can reject the second insert.
Existing rows are backfilled from sender_id/recipient_id.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_pending_pair_index"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "connection_requests",
        sa.Column("pair_key", sa.String(80), nullable=True),
    )
    op.execute(
        "UPDATE connection_requests SET pair_key = "
        "LEAST(sender_id::text, recipient_id::text) || ':' || "
        "GREATEST(sender_id::text, recipient_id::text)"
    )
    op.alter_column("connection_requests", "pair_key", nullable=False)
    op.create_index(
        "uq_connection_requests_pending_pair", "connection_requests",
        ["pair_key"], unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    op.drop_index(
        "uq_connection_requests_pending_pair", "connection_requests",
    )
    op.drop_column("connection_requests", "pair_key")
