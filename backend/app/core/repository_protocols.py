"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, ORM rows and test fakes both satisfy
      the *Like contracts without inheriting from anything
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the rule functions that consume their results are never async themselves
    - transition() is a conditional write keyed on status == pending: the freshest
      stored state decides the winner, not the copy the caller loaded earlier
"""

from datetime import datetime
from typing import Protocol

from app.core.domain_types import (
    AccountId, RequestId, NotificationId, PostId,
    RequestStatus, NotificationType,
)
from app.core.email_templates import OutboundEmail


class AccountLike(Protocol):
    """Structural contract for account records handed to the engine."""
    id: AccountId
    username: str
    email: str
    name: str
    headline: str | None
    profile_picture: str | None


class ConnectionRequestLike(Protocol):
    """Structural contract for connection request records."""
    id: RequestId
    sender_id: AccountId
    recipient_id: AccountId
    status: str
    created_at: datetime


class NotificationLike(Protocol):
    """Structural contract for notification records."""
    id: NotificationId
    recipient_id: AccountId
    type: str
    related_user_id: AccountId
    related_post_id: PostId | None
    read: bool
    created_at: datetime


class Transaction(Protocol):
    """Unit-of-work boundary — AsyncSession satisfies it structurally."""
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class AccountDirectory(Protocol):
    """Contract for account lookup and the symmetric connection relation."""
    async def get(self, account_id: AccountId) -> AccountLike | None: ...
    async def get_by_username(self, username: str) -> AccountLike | None: ...
    async def connection_ids(self, account_id: AccountId) -> set[AccountId]: ...
    async def add_connection(
        self, account_id: AccountId, partner_id: AccountId,
    ) -> None: ...
    async def remove_connection(
        self, account_id: AccountId, partner_id: AccountId,
    ) -> None: ...
    async def list_connections(self, account_id: AccountId) -> list[AccountLike]: ...


class ConnectionRequestStore(Protocol):
    """Contract for connection request persistence."""
    async def create(
        self, sender_id: AccountId, recipient_id: AccountId,
    ) -> ConnectionRequestLike: ...
    async def get(self, request_id: RequestId) -> ConnectionRequestLike | None: ...
    async def find_pending_between(
        self, a: AccountId, b: AccountId,
    ) -> ConnectionRequestLike | None: ...
    async def list_pending_for_recipient(
        self, recipient_id: AccountId,
    ) -> list[ConnectionRequestLike]: ...
    async def transition(
        self, request_id: RequestId, to_status: RequestStatus,
    ) -> bool: ...


class NotificationSink(Protocol):
    """Contract for the per-recipient notification log."""
    async def append(
        self,
        recipient_id: AccountId,
        type: NotificationType,
        related_user_id: AccountId,
        related_post_id: PostId | None = None,
    ) -> NotificationId: ...
    async def list_for_recipient(
        self, recipient_id: AccountId,
    ) -> list[NotificationLike]: ...
    async def mark_read(
        self, notification_id: NotificationId, recipient_id: AccountId,
    ) -> NotificationLike | None: ...
    async def delete(
        self, notification_id: NotificationId, recipient_id: AccountId,
    ) -> bool: ...


class EmailSender(Protocol):
    """Contract for outbound email transport — implemented by infrastructure."""
    async def send(self, email: OutboundEmail) -> None: ...
