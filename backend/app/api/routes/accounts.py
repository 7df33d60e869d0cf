"""Account Routes — public profile lookup by username."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_actor
from app.core.domain_types import AccountId
from app.core.errors import ResourceNotFoundError
from app.infrastructure.database import get_db
from app.schemas.connection import AccountProfile
from app.services.sql_stores import SqlAccountDirectory

router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.get("/{username}", response_model=AccountProfile)
async def get_public_profile(
    username: str,
    actor_id: AccountId = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    account = await SqlAccountDirectory(db).get_by_username(username)
    if account is None:
        raise ResourceNotFoundError("Account", username)
    return AccountProfile.model_validate(account)
