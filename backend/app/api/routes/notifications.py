"""Notification Routes — read, mark-read, and delete the actor's own notifications.

Invariants:
    - An actor only ever sees or mutates notifications addressed to them;
      someone else's notification id behaves exactly like an unknown one (404)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_actor
from app.core.domain_types import AccountId, NotificationId
from app.core.errors import ResourceNotFoundError
from app.infrastructure.database import get_db
from app.schemas.connection import MessageResponse
from app.schemas.notification import NotificationResponse
from app.services.sql_stores import SqlNotificationSink

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    actor_id: AccountId = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """The actor's notifications, newest first."""
    notifications = await SqlNotificationSink(db).list_for_recipient(actor_id)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    notification = await SqlNotificationSink(db).mark_read(
        NotificationId(notification_id), actor_id,
    )
    if notification is None:
        raise ResourceNotFoundError("Notification", str(notification_id))
    await db.commit()
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    deleted = await SqlNotificationSink(db).delete(
        NotificationId(notification_id), actor_id,
    )
    if not deleted:
        raise ResourceNotFoundError("Notification", str(notification_id))
    await db.commit()
    return MessageResponse(message="Notification deleted successfully")
