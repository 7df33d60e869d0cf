"""Linkup API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LinkupError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and email dispatcher initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Email transport only constructed when email_enabled: local and test runs
      log the skipped delivery instead of calling out
    - Optional reconciliation on startup repairs any half-written connection
      before traffic is accepted
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import accounts, connections, health, notifications
from app.config import Settings, get_settings
from app.infrastructure.database import init_db
from app.infrastructure.email_client import ResilientEmailClient
from app.infrastructure.observability import setup_logging
from app.services.email_dispatch import init_email_dispatcher
from app.services.reconcile_connections import reconcile_connections

logger = logging.getLogger(__name__)


def _build_email_client(settings: Settings) -> ResilientEmailClient | None:
    if not settings.email_enabled:
        return None
    return ResilientEmailClient(
        api_url=settings.email_api_url,
        api_token=settings.email_api_token,
        sender_address=settings.email_sender_address,
        sender_name=settings.email_sender_name,
        max_retries=settings.email_max_retries,
        base_delay_ms=settings.email_base_delay_ms,
        max_delay_ms=settings.email_max_delay_ms,
        timeout_seconds=settings.email_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    email_client = _build_email_client(settings)
    init_email_dispatcher(email_client)
    if settings.reconcile_on_startup:
        async with manager.session() as db:
            await reconcile_connections(db)
    logger.info("Linkup API started")
    yield
    logger.info("Linkup API shutting down")
    if email_client is not None:
        await email_client.aclose()
    await manager.dispose()


app = FastAPI(
    title="Linkup API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(connections.router)
app.include_router(notifications.router)

register_error_handlers(app)
