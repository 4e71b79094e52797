"""Database layer for persisting enriched transactions (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM model ``LedgerTransaction``
- Engine/session helpers in ``sms_ledger.db.client``
"""

from __future__ import annotations

from .client import get_engine, get_session, init_schema, session_scope
from .models import Base, LedgerTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "LedgerTransaction",
    "get_engine",
    "get_session",
    "init_schema",
    "metadata",
    "session_scope",
]
