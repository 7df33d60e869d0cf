"""Connection Rules — pure validation and classification for the connection lifecycle.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - check_* return an error instance on violation, None on success
    - validate_* chain their checks — first error wins, in a fixed order
    - Only the recipient may resolve a request, and only while it is pending

Design Decisions:
    - Return errors instead of raising: the engine decides when to raise, so the
      same checks can be evaluated in tests without pytest.raises plumbing
    - classify_status takes already-loaded facts: the engine owns the queries,
      this module owns the precedence (connected > pending/received > not_connected)
"""

from dataclasses import dataclass

from app.core.domain_types import (
    AccountId, RequestId, RequestStatus, ConnectionStatus, Resolution,
)
from app.core.errors import (
    LinkupError, InvalidOperationError, ConflictError, ForbiddenError,
    ResourceNotFoundError, ErrorContext,
)
from app.core.repository_protocols import AccountLike, ConnectionRequestLike


@dataclass(frozen=True)
class ConnectionStatusView:
    """What the actor sees when looking at a target account."""
    status: ConnectionStatus
    request_id: RequestId | None = None


# ─── send ────────────────────────────────────────────────────────

def check_not_self(actor_id: AccountId, target_id: AccountId) -> LinkupError | None:
    if actor_id == target_id:
        return InvalidOperationError(
            "You cannot send connection request to yourself",
            ErrorContext(actor_id=str(actor_id), target_id=str(target_id)),
        )
    return None


def check_target_exists(
    target_id: AccountId, target: AccountLike | None,
) -> LinkupError | None:
    if target is None:
        return ResourceNotFoundError("Account", str(target_id))
    return None


def check_not_connected(
    actor_connections: set[AccountId], target_id: AccountId,
) -> LinkupError | None:
    if target_id in actor_connections:
        return ConflictError(
            "You are already connected",
            ErrorContext(target_id=str(target_id)),
        )
    return None


def check_no_pending(pending: ConnectionRequestLike | None) -> LinkupError | None:
    """Either direction counts — a pending request owns the unordered pair."""
    if pending is not None:
        return ConflictError(
            "A connection request already exists",
            ErrorContext(request_id=str(pending.id)),
        )
    return None


def validate_send(
    actor_id: AccountId,
    target_id: AccountId,
    target: AccountLike | None,
    actor_connections: set[AccountId],
    pending: ConnectionRequestLike | None,
) -> LinkupError | None:
    """Chain all send preconditions. Returns first error or None."""
    return (
        check_not_self(actor_id, target_id)
        or check_target_exists(target_id, target)
        or check_not_connected(actor_connections, target_id)
        or check_no_pending(pending)
    )


# ─── accept / reject ─────────────────────────────────────────────

def check_request_exists(
    request_id: RequestId, request: ConnectionRequestLike | None,
) -> LinkupError | None:
    if request is None:
        return ResourceNotFoundError("Connection request", str(request_id))
    return None


def check_is_recipient(
    actor_id: AccountId, request: ConnectionRequestLike, resolution: Resolution,
) -> LinkupError | None:
    if request.recipient_id != actor_id:
        return ForbiddenError(
            f"You are not authorized to {resolution.value} this request",
            ErrorContext(actor_id=str(actor_id), request_id=str(request.id)),
        )
    return None


def check_is_pending(request: ConnectionRequestLike) -> LinkupError | None:
    if RequestStatus(request.status).is_terminal:
        return already_processed(request.id)
    return None


def already_processed(request_id: RequestId) -> ConflictError:
    """Shared by the pre-check and the lost-race branch of the conditional write."""
    return ConflictError(
        "This request has already been processed",
        ErrorContext(request_id=str(request_id)),
    )


def validate_resolution(
    actor_id: AccountId,
    request_id: RequestId,
    request: ConnectionRequestLike | None,
    resolution: Resolution,
) -> LinkupError | None:
    """Chain accept/reject preconditions: exists → recipient → pending."""
    return (
        check_request_exists(request_id, request)
        or check_is_recipient(actor_id, request, resolution)
        or check_is_pending(request)
    )


# ─── remove ──────────────────────────────────────────────────────

def validate_remove(
    actor_id: AccountId, target_id: AccountId, target: AccountLike | None,
) -> LinkupError | None:
    if actor_id == target_id:
        return InvalidOperationError(
            "You cannot remove yourself as a connection",
            ErrorContext(actor_id=str(actor_id)),
        )
    return check_target_exists(target_id, target)


# ─── status ──────────────────────────────────────────────────────

def classify_status(
    actor_id: AccountId,
    target_id: AccountId,
    actor_connections: set[AccountId],
    pending: ConnectionRequestLike | None,
) -> ConnectionStatusView:
    """Classify the pair from the actor's side. Connected wins over any open request."""
    if target_id in actor_connections:
        return ConnectionStatusView(ConnectionStatus.CONNECTED)
    if pending is not None and pending.status == RequestStatus.PENDING.value:
        if pending.sender_id == actor_id:
            return ConnectionStatusView(ConnectionStatus.PENDING)
        if pending.sender_id == target_id:
            return ConnectionStatusView(ConnectionStatus.RECEIVED, pending.id)
    return ConnectionStatusView(ConnectionStatus.NOT_CONNECTED)
