"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - AccountId, RequestId, NotificationId, PostId wrap UUIDs — identifiers are
      compared by value, never coerced to strings first
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, values match DB columns
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

AccountId = NewType("AccountId", UUID)
RequestId = NewType("RequestId", UUID)
NotificationId = NewType("NotificationId", UUID)
PostId = NewType("PostId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class RequestStatus(str, Enum):
    """Connection request lifecycle — PENDING is the only non-terminal state."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class ConnectionStatus(str, Enum):
    """Relationship between the actor and a target, as seen by the actor."""
    CONNECTED = "connected"
    PENDING = "pending"          # actor sent a request that is still open
    RECEIVED = "received"        # target sent the actor a request that is still open
    NOT_CONNECTED = "not_connected"


class NotificationType(str, Enum):
    """Notification kinds — values are persisted and sent to clients as-is."""
    CONNECTION_ACCEPTED = "connectionAccepted"
    COMMENT = "comment"
    LIKE = "like"


class Resolution(str, Enum):
    """Recipient decision on a pending request."""
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def target_status(self) -> RequestStatus:
        if self is Resolution.ACCEPT:
            return RequestStatus.ACCEPTED
        return RequestStatus.REJECTED
