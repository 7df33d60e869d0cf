"""Email Dispatch — best-effort delivery of rendered emails, decoupled from the request.

Invariants:
    - deliver() NEVER raises: every failure is logged and dropped
    - No retry beyond what the transport itself does
    - Disabled delivery (no sender configured) is logged at INFO, not treated as failure

Design Decisions:
    - Runs as a FastAPI background task: the response is already on the wire when
      delivery starts, and a failure cannot touch the committed transition
    - Module-level dispatcher initialized in lifespan, same pattern as db_manager
"""

import logging

from app.core.email_templates import OutboundEmail
from app.core.errors import EmailDeliveryError
from app.core.repository_protocols import EmailSender

logger = logging.getLogger(__name__)


class EmailDispatcher:
    """Hands emails to the transport and absorbs every failure."""

    def __init__(self, sender: EmailSender | None):
        self._sender = sender

    @property
    def enabled(self) -> bool:
        return self._sender is not None

    async def deliver(self, email: OutboundEmail) -> None:
        if self._sender is None:
            logger.info(
                "Email delivery disabled, skipping",
                extra={"email_category": email.category},
            )
            return
        try:
            await self._sender.send(email)
        except EmailDeliveryError as e:
            logger.error(
                f"Email delivery failed: {e.message}",
                extra={"error_code": e.code, "email_category": email.category},
            )
        except Exception as e:
            logger.error(
                f"Unexpected email delivery failure: {e}",
                exc_info=True,
                extra={"email_category": email.category},
            )


# Singleton (initialized on startup)
email_dispatcher: EmailDispatcher = EmailDispatcher(None)


def init_email_dispatcher(sender: EmailSender | None) -> EmailDispatcher:
    global email_dispatcher
    email_dispatcher = EmailDispatcher(sender)
    return email_dispatcher


def get_email_dispatcher() -> EmailDispatcher:
    """FastAPI dependency for the email dispatcher."""
    return email_dispatcher
