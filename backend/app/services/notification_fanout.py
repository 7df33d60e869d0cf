"""Notification Fan-out — durable notification record plus a best-effort email echo.

Invariants:
    - notify() writes exactly one Notification record; persistence failures propagate
    - Email echoes are staged, never sent inline; release() hands them to the
      deferrer only after the caller has committed
    - The email leg never raises into the caller (EmailDispatcher absorbs failures)

Design Decisions:
    - One fan-out instance per unit of work: staged emails die with it if the
      transaction never commits
    - Deferrer is any add_task-shaped callable (FastAPI BackgroundTasks.add_task
      in requests, a list append in tests)
"""

import logging
from typing import Any, Callable

from app.core.domain_types import (
    AccountId, NotificationId, PostId, NotificationType,
)
from app.core.email_templates import OutboundEmail
from app.core.repository_protocols import NotificationSink
from app.services.email_dispatch import EmailDispatcher

logger = logging.getLogger(__name__)

Deferrer = Callable[..., Any]


class NotificationFanout:
    """Produces the side effects of one state transition."""

    def __init__(
        self, sink: NotificationSink, dispatcher: EmailDispatcher, defer: Deferrer,
    ):
        self._sink = sink
        self._dispatcher = dispatcher
        self._defer = defer
        self._staged: list[OutboundEmail] = []

    async def notify(
        self,
        recipient_id: AccountId,
        type: NotificationType,
        related_user_id: AccountId,
        related_post_id: PostId | None = None,
        email: OutboundEmail | None = None,
    ) -> NotificationId:
        notification_id = await self._sink.append(
            recipient_id, type, related_user_id, related_post_id,
        )
        logger.info(
            "Notification recorded",
            extra={
                "notification_type": type.value,
                "target_id": recipient_id,
                "actor_id": related_user_id,
            },
        )
        if email is not None:
            self._staged.append(email)
        return notification_id

    def release(self) -> int:
        """Hand staged emails to the deferrer. Call only after commit."""
        released = len(self._staged)
        for email in self._staged:
            self._defer(self._dispatcher.deliver, email)
        self._staged = []
        return released

    @property
    def staged(self) -> tuple[OutboundEmail, ...]:
        return tuple(self._staged)
