"""Connection Schemas — Pydantic response models for the connection and account routes.

Invariants:
    - Status response uses the wire name requestId and omits it unless status == received
    - Account payloads never expose email addresses

Design Decisions:
    - from_attributes=True: ORM rows validate directly into response models
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    message: str


class ConnectionStatusResponse(BaseModel):
    """Relationship between the actor and a target account."""
    status: str
    request_id: UUID | None = Field(None, serialization_alias="requestId")


class AccountSummary(BaseModel):
    """Public account fields shown in lists."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    name: str
    headline: str | None = None
    profile_picture: str | None = None


class AccountProfile(AccountSummary):
    """Public profile — summary plus free-text fields."""
    about: str | None = None
    location: str | None = None
    created_at: datetime


class IncomingRequestResponse(BaseModel):
    """A pending request addressed to the actor."""
    id: UUID
    status: str
    created_at: datetime
    sender: AccountSummary
