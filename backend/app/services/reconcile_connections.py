"""Connection Reconciliation — repairs asymmetric or self-referencing connection rows.

Invariants:
    - After a run, every edge (a, b) has its mirror (b, a)
    - After a run, no edge (a, a) exists
    - Idempotent: a second run over repaired data changes nothing

Design Decisions:
    - Repair by adding the missing mirror, never by deleting the lone edge: a
      half-written accept meant both sides agreed to connect
    - Runs on startup (reconcile_on_startup) or as
      `python -m app.services.reconcile_connections`
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.connection_graph import find_missing_mirrors, find_self_edges
from app.models.account import AccountConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileReport:
    mirrors_added: int
    self_edges_removed: int

    @property
    def changed(self) -> bool:
        return bool(self.mirrors_added or self.self_edges_removed)


async def reconcile_connections(db: AsyncSession) -> ReconcileReport:
    """Scan all connection rows, repair them, and commit."""
    result = await db.execute(
        select(AccountConnection.account_id, AccountConnection.connection_id),
    )
    edges = [(row[0], row[1]) for row in result.all()]

    self_edges = find_self_edges(edges)
    for account_id, _ in self_edges:
        await db.execute(
            delete(AccountConnection)
            .where(AccountConnection.account_id == account_id)
            .where(AccountConnection.connection_id == account_id),
        )

    missing = find_missing_mirrors(edges)
    for account_id, connection_id in missing:
        db.add(AccountConnection(
            account_id=account_id, connection_id=connection_id,
        ))

    await db.commit()
    report = ReconcileReport(
        mirrors_added=len(missing), self_edges_removed=len(self_edges),
    )
    if report.changed:
        logger.warning(
            f"Connection graph repaired: {report.mirrors_added} mirror(s) added, "
            f"{report.self_edges_removed} self edge(s) removed",
        )
    else:
        logger.info("Connection graph consistent, nothing to repair")
    return report


async def _main() -> None:
    from app.config import get_settings
    from app.db.session import create_session_factory
    from app.infrastructure.observability import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    engine, factory = create_session_factory(settings.database_url)
    try:
        async with factory() as db:
            await reconcile_connections(db)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
