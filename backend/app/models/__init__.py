"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Accounts are the root; requests, connections, and notifications reference them

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from app.models.account import Account, AccountConnection  # noqa: F401
from app.models.connection_request import ConnectionRequest  # noqa: F401
from app.models.notification import Notification  # noqa: F401
