"""Connection Lifecycle Engine — send / accept / reject / status / remove for account pairs.

Invariants:
    - Actor identity is always an explicit argument, never ambient state
    - Preconditions come from core/connection_rules.py; first failing rule wins
    - accept/reject go through the store's conditional transition: of two racing
      resolutions exactly one wins, the other sees ConflictError
    - accept commits the status change, both connection edges, and the sender's
      connectionAccepted notification in ONE transaction
    - The acceptance email is released to the deferrer only after that commit

Design Decisions:
    - Engine holds no state between calls: one instance per request, built by the
      API dependency from the request's DB session
    - Rejections produce no notification and no account mutation
    - remove() is idempotent for unconnected pairs: deleting an absent edge is a no-op
"""

import logging
from dataclasses import dataclass

from app.core.connection_rules import (
    ConnectionStatusView,
    validate_send,
    validate_resolution,
    validate_remove,
    classify_status,
    already_processed,
)
from app.core.domain_types import (
    AccountId, RequestId, NotificationType, Resolution,
)
from app.core.email_templates import (
    build_connection_accepted_email, profile_url,
)
from app.core.repository_protocols import (
    AccountDirectory,
    AccountLike,
    ConnectionRequestLike,
    ConnectionRequestStore,
    Transaction,
)
from app.services.notification_fanout import NotificationFanout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingRequest:
    """A pending request addressed to the actor, with the sender's profile."""
    request: ConnectionRequestLike
    sender: AccountLike


class ConnectionEngine:
    """State machine and authorization rules for connection requests."""

    def __init__(
        self,
        tx: Transaction,
        accounts: AccountDirectory,
        requests: ConnectionRequestStore,
        fanout: NotificationFanout,
        frontend_url: str,
    ):
        self._tx = tx
        self._accounts = accounts
        self._requests = requests
        self._fanout = fanout
        self._frontend_url = frontend_url

    async def send(
        self, actor_id: AccountId, target_id: AccountId,
    ) -> ConnectionRequestLike:
        """Open a pending request from actor to target. No notification on send."""
        target = await self._accounts.get(target_id)
        connections = await self._accounts.connection_ids(actor_id)
        pending = await self._requests.find_pending_between(actor_id, target_id)

        error = validate_send(actor_id, target_id, target, connections, pending)
        if error:
            raise error

        request = await self._requests.create(actor_id, target_id)
        await self._tx.commit()
        logger.info(
            "Connection request sent",
            extra={
                "actor_id": actor_id, "target_id": target_id,
                "request_id": request.id,
            },
        )
        return request

    async def accept(
        self, actor_id: AccountId, request_id: RequestId,
    ) -> ConnectionRequestLike:
        """Accept as recipient: connect both accounts and notify the sender."""
        request = await self._resolve(actor_id, request_id, Resolution.ACCEPT)
        sender_id, recipient_id = request.sender_id, request.recipient_id

        await self._accounts.add_connection(sender_id, recipient_id)
        await self._accounts.add_connection(recipient_id, sender_id)

        await self._fanout.notify(
            sender_id,
            NotificationType.CONNECTION_ACCEPTED,
            recipient_id,
            email=await self._acceptance_email(sender_id, recipient_id),
        )
        await self._tx.commit()
        self._fanout.release()

        logger.info(
            "Connection request accepted",
            extra={"actor_id": actor_id, "request_id": request_id},
        )
        return request

    async def reject(
        self, actor_id: AccountId, request_id: RequestId,
    ) -> ConnectionRequestLike:
        """Reject as recipient. Terminal, silent."""
        request = await self._resolve(actor_id, request_id, Resolution.REJECT)
        await self._tx.commit()
        logger.info(
            "Connection request rejected",
            extra={"actor_id": actor_id, "request_id": request_id},
        )
        return request

    async def status(
        self, actor_id: AccountId, target_id: AccountId,
    ) -> ConnectionStatusView:
        connections = await self._accounts.connection_ids(actor_id)
        pending = None
        if target_id not in connections:
            pending = await self._requests.find_pending_between(actor_id, target_id)
        return classify_status(actor_id, target_id, connections, pending)

    async def list_incoming(self, actor_id: AccountId) -> list[IncomingRequest]:
        incoming = []
        for request in await self._requests.list_pending_for_recipient(actor_id):
            sender = await self._accounts.get(request.sender_id)
            if sender is None:
                logger.warning(
                    "Pending request from unknown sender skipped",
                    extra={"request_id": request.id},
                )
                continue
            incoming.append(IncomingRequest(request=request, sender=sender))
        return incoming

    async def list_connections(self, actor_id: AccountId) -> list[AccountLike]:
        return await self._accounts.list_connections(actor_id)

    async def remove(self, actor_id: AccountId, target_id: AccountId) -> None:
        """Drop the connection in both directions."""
        target = await self._accounts.get(target_id)
        error = validate_remove(actor_id, target_id, target)
        if error:
            raise error

        await self._accounts.remove_connection(actor_id, target_id)
        await self._accounts.remove_connection(target_id, actor_id)
        await self._tx.commit()
        logger.info(
            "Connection removed",
            extra={"actor_id": actor_id, "target_id": target_id},
        )

    # ─── helpers ─────────────────────────────────────────────────

    async def _resolve(
        self, actor_id: AccountId, request_id: RequestId, resolution: Resolution,
    ) -> ConnectionRequestLike:
        """Validate and apply the pending → terminal transition (not yet committed)."""
        request = await self._requests.get(request_id)
        error = validate_resolution(actor_id, request_id, request, resolution)
        if error:
            raise error

        won = await self._requests.transition(request_id, resolution.target_status)
        if not won:
            await self._tx.rollback()
            logger.warning(
                "Lost race resolving connection request",
                extra={"actor_id": actor_id, "request_id": request_id},
            )
            raise already_processed(request_id)
        return request

    async def _acceptance_email(
        self, sender_id: AccountId, recipient_id: AccountId,
    ):
        sender = await self._accounts.get(sender_id)
        recipient = await self._accounts.get(recipient_id)
        if sender is None or recipient is None:
            return None
        return build_connection_accepted_email(
            sender_email=sender.email,
            sender_name=sender.name,
            recipient_name=recipient.name,
            profile_link=profile_url(self._frontend_url, sender.username),
        )
