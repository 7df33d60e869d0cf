"""Notification Schemas — Pydantic response model for the notification routes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    type: str
    related_user_id: UUID
    related_post_id: UUID | None = None
    read: bool
    created_at: datetime
