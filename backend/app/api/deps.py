"""Request Dependencies — actor resolution and per-request engine wiring.

Invariants:
    - Every connection/notification route resolves the actor through get_current_actor
    - Missing, malformed, or unknown actor ids → NotAuthenticatedError (401)
    - One engine + fan-out per request, bound to the request's DB session and
      BackgroundTasks (emails run after the response is sent)

Design Decisions:
    - Actor read from a configured header: session/cookie verification happens
      upstream, this service only trusts the resolved id
"""

from uuid import UUID

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import AccountId
from app.core.errors import NotAuthenticatedError
from app.infrastructure.database import get_db
from app.models.account import Account
from app.services.connection_engine import ConnectionEngine
from app.services.email_dispatch import EmailDispatcher, get_email_dispatcher
from app.services.notification_fanout import NotificationFanout
from app.services.sql_stores import (
    SqlAccountDirectory, SqlConnectionRequestStore, SqlNotificationSink,
)


async def get_current_actor(
    request: Request, db: AsyncSession = Depends(get_db),
) -> AccountId:
    raw = request.headers.get(get_settings().actor_header)
    if not raw:
        raise NotAuthenticatedError()
    try:
        account_id = UUID(raw)
    except ValueError:
        raise NotAuthenticatedError()
    account = await db.get(Account, account_id)
    if account is None:
        raise NotAuthenticatedError()
    return AccountId(account.id)


def get_connection_engine(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> ConnectionEngine:
    fanout = NotificationFanout(
        SqlNotificationSink(db), dispatcher, background_tasks.add_task,
    )
    return ConnectionEngine(
        tx=db,
        accounts=SqlAccountDirectory(db),
        requests=SqlConnectionRequestStore(db),
        fanout=fanout,
        frontend_url=get_settings().frontend_url,
    )
