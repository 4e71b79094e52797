"""DB helpers for tests: bootstrap a temporary SQLite ledger database."""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import text as sql_text

from sms_ledger.db import LedgerTransaction
from sms_ledger.db.client import init_schema, session_scope


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    init_schema(database_url=url)
    _assert_ledger_schema_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def count_rows(database_url: str) -> int:
    with session_scope(database_url=database_url) as session:
        stmt = sql_text("SELECT COUNT(*) FROM ledger_transactions")
        return int(session.execute(stmt).scalar_one())


def _assert_ledger_schema_in_sync(database_url: str) -> None:
    """Quick sanity check: ORM column set matches SQLite table column set."""

    expected = {c.name for c in LedgerTransaction.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('ledger_transactions')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    missing = expected - got
    extra = got - expected
    assert not missing and not extra, (
        f"ledger_transactions schema drift: missing={missing or '-'}, extra={extra or '-'}"
    )
