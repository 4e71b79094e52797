"""Pytest configuration for test isolation.

The CLI and the database client read ``DATABASE_URL`` and ``SMS_LEDGER_*``
from the environment (and from a local ``.env``), and the client caches one
engine per URL for the life of the process. Either can leak state between
tests: a developer's exported ``DATABASE_URL`` would be picked up by tests
that expect it to be missing, and a cached engine would keep a handle on a
temporary SQLite file that pytest later removes.

An autouse fixture clears the relevant variables and disposes cached engines
after each test.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from sms_ledger.db.client import dispose_engines

_ENV_VARS = (
    "DATABASE_URL",
    "SMS_LEDGER_LOG_LEVEL",
    "SMS_LEDGER_MAX_AMOUNT",
    "SMS_LEDGER_MAX_WORKERS",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    dispose_engines()
