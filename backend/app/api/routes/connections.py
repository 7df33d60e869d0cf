"""Connection Routes — HTTP surface of the connection lifecycle engine.

Invariants:
    - Every route requires an actor (get_current_actor)
    - Routes never contain business logic: they delegate to ConnectionEngine and
      shape the response
    - Domain errors propagate to the global LinkupError handler

Design Decisions:
    - Static paths (/requests, /status/..., /request/...) declared before the
      catch-all DELETE /{user_id} so they are never shadowed
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_actor, get_connection_engine
from app.core.domain_types import AccountId, RequestId
from app.schemas.connection import (
    AccountSummary,
    ConnectionStatusResponse,
    IncomingRequestResponse,
    MessageResponse,
)
from app.services.connection_engine import ConnectionEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/connections", tags=["connections"])


@router.post(
    "/request/{target_id}", response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_connection_request(
    target_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    """Send a connection request to another account."""
    await engine.send(actor_id, AccountId(target_id))
    return MessageResponse(message="Connection request sent successfully")


@router.put("/accept/{request_id}", response_model=MessageResponse)
async def accept_connection_request(
    request_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    """Accept a pending request. The acceptance email goes out after the response."""
    await engine.accept(actor_id, RequestId(request_id))
    return MessageResponse(message="Connection request accepted")


@router.put("/reject/{request_id}", response_model=MessageResponse)
async def reject_connection_request(
    request_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    """Reject a pending request."""
    await engine.reject(actor_id, RequestId(request_id))
    return MessageResponse(message="Connection request rejected")


@router.get(
    "/status/{target_id}", response_model=ConnectionStatusResponse,
    response_model_exclude_none=True,
)
async def get_connection_status(
    target_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    view = await engine.status(actor_id, AccountId(target_id))
    return ConnectionStatusResponse(
        status=view.status.value, request_id=view.request_id,
    )


@router.get("/requests", response_model=list[IncomingRequestResponse])
async def list_connection_requests(
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    """Pending requests addressed to the actor, newest first."""
    incoming = await engine.list_incoming(actor_id)
    return [
        IncomingRequestResponse(
            id=item.request.id,
            status=item.request.status,
            created_at=item.request.created_at,
            sender=AccountSummary.model_validate(item.sender),
        )
        for item in incoming
    ]


@router.get("", response_model=list[AccountSummary])
async def list_connections(
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    accounts = await engine.list_connections(actor_id)
    return [AccountSummary.model_validate(a) for a in accounts]


@router.delete("/{user_id}", response_model=MessageResponse)
async def remove_connection(
    user_id: UUID,
    actor_id: AccountId = Depends(get_current_actor),
    engine: ConnectionEngine = Depends(get_connection_engine),
):
    await engine.remove(actor_id, AccountId(user_id))
    return MessageResponse(message="Connection removed successfully")
