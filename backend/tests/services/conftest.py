"""Service test fixtures — async SQLite DB, FastAPI test client, in-memory fake stores.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB
    - Email dispatcher overridden with a recording sender (no outbound calls)
    - Fake stores satisfy the core/repository_protocols.py contracts structurally

Design Decisions:
    - SQLite in-memory: fast, no external dependency, supports the partial unique
      index and CHECK constraints the schema relies on
    - Fakes yield to the event loop on reads (asyncio.sleep(0)) so concurrent
      engine calls genuinely interleave between load and transition
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.core.domain_types import (
    AccountId, RequestId, NotificationId, RequestStatus,
)
from app.core.errors import EmailDeliveryError
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
import app.infrastructure.database as db_module
from app.main import app
from app.models.account import Account
from app.services.connection_engine import ConnectionEngine
from app.services.email_dispatch import EmailDispatcher, get_email_dispatcher
from app.services.notification_fanout import NotificationFanout


def _now():
    return datetime.now(timezone.utc)


# ─── Database + HTTP client ─────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


class RecordingEmailSender:
    """EmailSender that records messages, optionally failing every send."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send(self, email):
        if self.fail:
            raise EmailDeliveryError("boom", "connection_error")
        self.sent.append(email)


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
async def client(test_engine, test_session_factory, email_sender):
    """FastAPI test client with DB and email dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_dispatcher] = (
        lambda: EmailDispatcher(email_sender)
    )

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_account(test_db):
    """Insert an account and return it."""
    async def _make(username: str, name: str | None = None) -> Account:
        account = Account(
            username=username,
            email=f"{username}@example.com",
            name=name or username.capitalize(),
            headline=f"{username} headline",
        )
        test_db.add(account)
        await test_db.commit()
        await test_db.refresh(account)
        return account
    return _make


def as_actor(account) -> dict:
    """Request headers authenticating as account."""
    return {"X-Account-Id": str(account.id)}


@pytest.fixture
def actor_headers():
    return as_actor


# ─── In-memory fakes ────────────────────────────────────────────

@dataclass
class FakeAccount:
    id: AccountId
    username: str
    email: str
    name: str
    headline: str | None = None
    profile_picture: str | None = None


@dataclass
class FakeRequest:
    id: RequestId
    sender_id: AccountId
    recipient_id: AccountId
    status: str = RequestStatus.PENDING.value
    created_at: datetime = field(default_factory=_now)


@dataclass
class FakeNotification:
    id: NotificationId
    recipient_id: AccountId
    type: str
    related_user_id: AccountId
    related_post_id: uuid.UUID | None = None
    read: bool = False
    created_at: datetime = field(default_factory=_now)


class FakeAccountDirectory:
    def __init__(self):
        self.accounts: dict[AccountId, FakeAccount] = {}
        self.edges: set[tuple[AccountId, AccountId]] = set()
        self.fail_on_add_to: AccountId | None = None

    async def get(self, account_id):
        await asyncio.sleep(0)
        return self.accounts.get(account_id)

    async def get_by_username(self, username):
        return next(
            (a for a in self.accounts.values() if a.username == username), None,
        )

    async def connection_ids(self, account_id):
        await asyncio.sleep(0)
        return {b for a, b in self.edges if a == account_id}

    async def add_connection(self, account_id, partner_id):
        if account_id == self.fail_on_add_to:
            raise RuntimeError("directory write failed")
        self.edges.add((account_id, partner_id))

    async def remove_connection(self, account_id, partner_id):
        self.edges.discard((account_id, partner_id))

    async def list_connections(self, account_id):
        return [self.accounts[b] for a, b in sorted(self.edges) if a == account_id]


class FakeRequestStore:
    def __init__(self):
        self.requests: dict[RequestId, FakeRequest] = {}

    async def create(self, sender_id, recipient_id):
        request = FakeRequest(RequestId(uuid.uuid4()), sender_id, recipient_id)
        self.requests[request.id] = request
        return request

    async def get(self, request_id):
        await asyncio.sleep(0)
        stored = self.requests.get(request_id)
        if stored is None:
            return None
        # Callers get a snapshot, like a row loaded in their own session
        return FakeRequest(**vars(stored))

    async def find_pending_between(self, a, b):
        await asyncio.sleep(0)
        for r in self.requests.values():
            if r.status == RequestStatus.PENDING.value and {r.sender_id, r.recipient_id} == {a, b}:
                return r
        return None

    async def list_pending_for_recipient(self, recipient_id):
        return [
            r for r in self.requests.values()
            if r.recipient_id == recipient_id and r.status == RequestStatus.PENDING.value
        ]

    async def transition(self, request_id, to_status):
        stored = self.requests.get(request_id)
        if stored is None or stored.status != RequestStatus.PENDING.value:
            return False
        stored.status = to_status.value
        return True


class FakeNotificationSink:
    def __init__(self):
        self.notifications: list[FakeNotification] = []
        self.fail = False

    async def append(self, recipient_id, type, related_user_id, related_post_id=None):
        if self.fail:
            raise RuntimeError("notification store unavailable")
        n = FakeNotification(
            NotificationId(uuid.uuid4()), recipient_id, type.value,
            related_user_id, related_post_id,
        )
        self.notifications.append(n)
        return n.id

    async def list_for_recipient(self, recipient_id):
        return [n for n in self.notifications if n.recipient_id == recipient_id]

    async def mark_read(self, notification_id, recipient_id):
        for n in self.notifications:
            if n.id == notification_id and n.recipient_id == recipient_id:
                n.read = True
                return n
        return None

    async def delete(self, notification_id, recipient_id):
        before = len(self.notifications)
        self.notifications = [
            n for n in self.notifications
            if not (n.id == notification_id and n.recipient_id == recipient_id)
        ]
        return len(self.notifications) < before


class FakeTransaction:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FakeWorld:
    """Shared fake stores plus a factory for per-call engines."""

    def __init__(self):
        self.accounts = FakeAccountDirectory()
        self.requests = FakeRequestStore()
        self.notifications = FakeNotificationSink()
        self.tx = FakeTransaction()
        self.deferred: list[tuple] = []
        self.dispatcher = EmailDispatcher(RecordingEmailSender())

    def add_account(self, username: str) -> FakeAccount:
        account = FakeAccount(
            id=AccountId(uuid.uuid4()),
            username=username,
            email=f"{username}@example.com",
            name=username.capitalize(),
        )
        self.accounts.accounts[account.id] = account
        return account

    def connect(self, a: FakeAccount, b: FakeAccount) -> None:
        self.accounts.edges |= {(a.id, b.id), (b.id, a.id)}

    def _defer(self, func, *args):
        self.deferred.append((func, args))

    def engine(self) -> ConnectionEngine:
        fanout = NotificationFanout(
            self.notifications, self.dispatcher, self._defer,
        )
        return ConnectionEngine(
            tx=self.tx,
            accounts=self.accounts,
            requests=self.requests,
            fanout=fanout,
            frontend_url="https://linkup.test",
        )


@pytest.fixture
def world():
    return FakeWorld()
