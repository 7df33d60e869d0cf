"""SQL Stores — SQLAlchemy implementations of the account, request, and notification protocols.

Invariants:
    - Stores never commit: the caller (engine or route) owns the transaction
    - add_connection has set semantics — adding an existing edge is a no-op
    - transition() is a single conditional UPDATE guarded by status = 'pending';
      its rowcount decides the winner when two resolutions race
    - A unique violation on the pending-pair index surfaces as ConflictError,
      not as a generic DatabaseError

Design Decisions:
    - Pair predicate built once (_pending_between) and reused by every query that
      asks "is there an open request between these two, in either direction"
    - get() uses populate_existing: a row already in the identity map is refreshed
      from the database instead of trusting the cached copy
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.connection_graph import pair_key
from app.core.domain_types import (
    AccountId, RequestId, NotificationId, PostId,
    RequestStatus, NotificationType,
)
from app.core.errors import ConflictError, ErrorContext
from app.models.account import Account, AccountConnection
from app.models.connection_request import ConnectionRequest
from app.models.notification import Notification

logger = logging.getLogger(__name__)


def _pending_between(a: AccountId, b: AccountId):
    """WHERE clause: a pending request between a and b, whichever side sent it."""
    return and_(
        ConnectionRequest.status == RequestStatus.PENDING.value,
        or_(
            and_(
                ConnectionRequest.sender_id == a,
                ConnectionRequest.recipient_id == b,
            ),
            and_(
                ConnectionRequest.sender_id == b,
                ConnectionRequest.recipient_id == a,
            ),
        ),
    )


class SqlAccountDirectory:
    """Account lookups and the directed rows backing the connection relation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, account_id: AccountId) -> Account | None:
        return await self.db.get(Account, account_id)

    async def get_by_username(self, username: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(Account.username == username),
        )
        return result.scalar_one_or_none()

    async def connection_ids(self, account_id: AccountId) -> set[AccountId]:
        result = await self.db.execute(
            select(AccountConnection.connection_id)
            .where(AccountConnection.account_id == account_id),
        )
        return {AccountId(cid) for cid in result.scalars().all()}

    async def add_connection(
        self, account_id: AccountId, partner_id: AccountId,
    ) -> None:
        existing = await self.db.get(AccountConnection, (account_id, partner_id))
        if existing is None:
            self.db.add(AccountConnection(
                account_id=account_id, connection_id=partner_id,
            ))
            await self.db.flush()

    async def remove_connection(
        self, account_id: AccountId, partner_id: AccountId,
    ) -> None:
        await self.db.execute(
            delete(AccountConnection)
            .where(AccountConnection.account_id == account_id)
            .where(AccountConnection.connection_id == partner_id),
        )

    async def list_connections(self, account_id: AccountId) -> list[Account]:
        result = await self.db.execute(
            select(Account)
            .join(AccountConnection, AccountConnection.connection_id == Account.id)
            .where(AccountConnection.account_id == account_id)
            .order_by(Account.name),
        )
        return list(result.scalars().all())


class SqlConnectionRequestStore:
    """Connection request persistence with a race-safe status transition."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, sender_id: AccountId, recipient_id: AccountId,
    ) -> ConnectionRequest:
        request = ConnectionRequest(
            sender_id=sender_id,
            recipient_id=recipient_id,
            pair_key=pair_key(sender_id, recipient_id),
            status=RequestStatus.PENDING.value,
        )
        self.db.add(request)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race against a request for the same pair sent concurrently
            await self.db.rollback()
            raise ConflictError(
                "A connection request already exists",
                ErrorContext(actor_id=str(sender_id), target_id=str(recipient_id)),
            )
        return request

    async def get(self, request_id: RequestId) -> ConnectionRequest | None:
        return await self.db.get(
            ConnectionRequest, request_id, populate_existing=True,
        )

    async def find_pending_between(
        self, a: AccountId, b: AccountId,
    ) -> ConnectionRequest | None:
        result = await self.db.execute(
            select(ConnectionRequest).where(_pending_between(a, b)).limit(1),
        )
        return result.scalars().first()

    async def list_pending_for_recipient(
        self, recipient_id: AccountId,
    ) -> list[ConnectionRequest]:
        result = await self.db.execute(
            select(ConnectionRequest)
            .where(ConnectionRequest.recipient_id == recipient_id)
            .where(ConnectionRequest.status == RequestStatus.PENDING.value)
            .order_by(ConnectionRequest.created_at.desc()),
        )
        return list(result.scalars().all())

    async def transition(
        self, request_id: RequestId, to_status: RequestStatus,
    ) -> bool:
        """Move a pending request to to_status. False if it was no longer pending."""
        result = await self.db.execute(
            update(ConnectionRequest)
            .where(ConnectionRequest.id == request_id)
            .where(ConnectionRequest.status == RequestStatus.PENDING.value)
            .values(
                status=to_status.value,
                resolved_at=datetime.now(timezone.utc),
            ),
        )
        return result.rowcount == 1


class SqlNotificationSink:
    """Per-recipient notification log."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        recipient_id: AccountId,
        type: NotificationType,
        related_user_id: AccountId,
        related_post_id: PostId | None = None,
    ) -> NotificationId:
        notification = Notification(
            recipient_id=recipient_id,
            type=type.value,
            related_user_id=related_user_id,
            related_post_id=related_post_id,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return NotificationId(notification.id)

    async def list_for_recipient(
        self, recipient_id: AccountId,
    ) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc()),
        )
        return list(result.scalars().all())

    async def mark_read(
        self, notification_id: NotificationId, recipient_id: AccountId,
    ) -> Notification | None:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.recipient_id == recipient_id),
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            return None
        notification.read = True
        await self.db.flush()
        return notification

    async def delete(
        self, notification_id: NotificationId, recipient_id: AccountId,
    ) -> bool:
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.recipient_id == recipient_id),
        )
        return result.rowcount == 1
