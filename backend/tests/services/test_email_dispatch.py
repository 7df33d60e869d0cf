"""Email dispatch and notification fan-out — delivery never reaches the caller."""

from uuid import uuid4

from app.core.domain_types import NotificationType
from app.core.email_templates import OutboundEmail
from app.services.email_dispatch import EmailDispatcher
from app.services.notification_fanout import NotificationFanout


def _email(to: str = "alice@example.com") -> OutboundEmail:
    return OutboundEmail(
        to_address=to, to_name="Alice", subject="Hi", html="<p>Hi</p>",
        text="Hi", category="connection_accepted",
    )


class _ExplodingSender:
    async def send(self, email):
        raise RuntimeError("socket closed")


async def test_deliver_hands_email_to_sender(email_sender):
    await EmailDispatcher(email_sender).deliver(_email())
    assert [e.to_address for e in email_sender.sent] == ["alice@example.com"]


async def test_deliver_swallows_delivery_error(email_sender):
    email_sender.fail = True
    await EmailDispatcher(email_sender).deliver(_email())
    assert email_sender.sent == []


async def test_deliver_swallows_unexpected_error():
    await EmailDispatcher(_ExplodingSender()).deliver(_email())


async def test_disabled_dispatcher_skips():
    dispatcher = EmailDispatcher(None)
    assert dispatcher.enabled is False
    await dispatcher.deliver(_email())


async def test_fanout_stages_until_release(world):
    deferred = []
    fanout = NotificationFanout(
        world.notifications, EmailDispatcher(None), lambda fn, *a: deferred.append((fn, a)),
    )
    recipient, related = uuid4(), uuid4()

    await fanout.notify(
        recipient, NotificationType.CONNECTION_ACCEPTED, related, email=_email(),
    )

    assert len(fanout.staged) == 1
    assert deferred == []
    assert fanout.release() == 1
    assert len(deferred) == 1
    assert deferred[0][1] == (_email(),)
    assert fanout.staged == ()


async def test_fanout_without_email_stages_nothing(world):
    fanout = NotificationFanout(world.notifications, EmailDispatcher(None), lambda *a: None)
    await fanout.notify(uuid4(), NotificationType.LIKE, uuid4(), uuid4())
    assert fanout.staged == ()
    assert fanout.release() == 0
