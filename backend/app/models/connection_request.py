"""ConnectionRequest ORM — a directional proposal from sender to recipient.

Invariants:
    - sender_id != recipient_id (CHECK constraint)
    - status transitions: pending -> accepted | rejected, both terminal
    - At most one pending row per unordered pair: partial unique index on pair_key
      WHERE status = 'pending'
    - Rows are never deleted

Design Decisions:
    - pair_key denormalized (sorted "a:b"): lets the database enforce the
      one-pending-per-pair rule for requests sent concurrently in both directions
    - resolved_at recorded on the single transition for auditability
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, DateTime, ForeignKey, CheckConstraint, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base

_PENDING = text("status = 'pending'")


class ConnectionRequest(Base):
    """Connection request entity — pending until the recipient decides."""
    __tablename__ = "connection_requests"
    __table_args__ = (
        CheckConstraint(
            "sender_id <> recipient_id", name="ck_connection_requests_not_self",
        ),
        Index(
            "uq_connection_requests_pending_pair", "pair_key",
            unique=True,
            postgresql_where=_PENDING,
            sqlite_where=_PENDING,
        ),
        Index("ix_connection_requests_recipient_status", "recipient_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
