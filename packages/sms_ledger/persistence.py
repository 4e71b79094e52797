"""Repository interface for storing and finding enriched transactions.

The parsing core is pure; persistence is a collaborator behind the small
:class:`TransactionRepository` protocol. Two implementations are provided:

- :class:`InMemoryTransactionRepository` for tests and one-shot CLI runs.
- :class:`SqlTransactionRepository` over the ``ledger_transactions`` table in
  :mod:`sms_ledger.db` (callers own the session/transaction scope).

Both are idempotent: storing the same transaction twice inserts it once. The
identity is a SHA-256 fingerprint over the canonical fields (see
:func:`compute_fingerprint`).
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db.models import LedgerTransaction
from .logging_setup import get_logger
from .models import ParsedTransaction

_logger = get_logger("sms_ledger.persistence")

# Fingerprints per IN (...) lookup; SQLite caps bound parameters per statement.
_LOOKUP_CHUNK = 500


def _fmt_amount(d: Decimal) -> str:
    return f"{d.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"


def compute_fingerprint(tx: ParsedTransaction, *, user_id: str | None = None) -> str:
    """Compute a stable SHA-256 fingerprint over canonical fields.

    Fields used: user id, amount (2dp string), type, date (YYYY-MM-DD),
    merchant and description (trimmed).
    """

    payload = {
        "user": user_id,
        "amount": _fmt_amount(tx.amount),
        "type": tx.type,
        "date": tx.date.isoformat(),
        "merchant": tx.merchant.strip(),
        "description": tx.description.strip(),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class TransactionRepository(Protocol):
    def store(
        self, transactions: Iterable[ParsedTransaction], *, user_id: str | None = None
    ) -> int: ...

    def find(
        self,
        *,
        user_id: str | None = None,
        category: str | None = None,
        merchant: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[ParsedTransaction]: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryTransactionRepository:
    """Process-local repository keeping insertion order."""

    def __init__(self) -> None:
        self._rows: list[tuple[str | None, ParsedTransaction]] = []
        self._fingerprints: set[str] = set()

    def __len__(self) -> int:
        return len(self._rows)

    def store(
        self, transactions: Iterable[ParsedTransaction], *, user_id: str | None = None
    ) -> int:
        inserted = 0
        for tx in transactions:
            fp = compute_fingerprint(tx, user_id=user_id)
            if fp in self._fingerprints:
                continue
            self._fingerprints.add(fp)
            self._rows.append((user_id, tx))
            inserted += 1
        return inserted

    def find(
        self,
        *,
        user_id: str | None = None,
        category: str | None = None,
        merchant: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[ParsedTransaction]:
        wanted_merchant = merchant.strip().upper() if merchant else None
        matches = [
            tx
            for owner, tx in self._rows
            if (user_id is None or owner == user_id)
            and (category is None or tx.category == category)
            and (wanted_merchant is None or tx.merchant.upper() == wanted_merchant)
            and (start is None or tx.date >= start)
            and (end is None or tx.date <= end)
        ]
        # sorted() is stable, so same-day rows keep insertion order.
        matches = sorted(matches, key=lambda tx: tx.date)
        return matches[:limit] if limit is not None else matches


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


def _to_row(tx: ParsedTransaction, *, user_id: str | None, fingerprint: str) -> LedgerTransaction:
    return LedgerTransaction(
        user_id=user_id,
        fingerprint_sha256=fingerprint,
        amount=tx.amount,
        type=tx.type,
        merchant=tx.merchant,
        account_number=tx.account_number,
        date=tx.date,
        description=tx.description,
        channel=tx.channel,
        category=tx.category,
        tags=list(tx.tags),
        balance=tx.balance,
    )


def _from_row(row: LedgerTransaction) -> ParsedTransaction:
    return ParsedTransaction(
        amount=Decimal(row.amount),
        type=row.type,  # type: ignore[arg-type]
        merchant=row.merchant,
        date=row.date,
        description=row.description,
        channel=row.channel,  # type: ignore[arg-type]
        category=row.category,  # type: ignore[arg-type]
        tags=tuple(row.tags or ()),
        account_number=row.account_number,
        balance=Decimal(row.balance) if row.balance is not None else None,
    )


class SqlTransactionRepository:
    """Repository over ``ledger_transactions``; the caller commits."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def store(
        self, transactions: Iterable[ParsedTransaction], *, user_id: str | None = None
    ) -> int:
        pending: dict[str, ParsedTransaction] = {}
        for tx in transactions:
            pending.setdefault(compute_fingerprint(tx, user_id=user_id), tx)
        if not pending:
            return 0

        fingerprints = list(pending)
        existing: set[str] = set()
        for start in range(0, len(fingerprints), _LOOKUP_CHUNK):
            chunk = fingerprints[start : start + _LOOKUP_CHUNK]
            existing.update(
                self._session.scalars(
                    select(LedgerTransaction.fingerprint_sha256).where(
                        LedgerTransaction.fingerprint_sha256.in_(chunk)
                    )
                )
            )
        rows = [
            _to_row(tx, user_id=user_id, fingerprint=fp)
            for fp, tx in pending.items()
            if fp not in existing
        ]
        self._session.add_all(rows)
        self._session.flush()
        _logger.info(
            "store:done received=%d inserted=%d duplicates=%d",
            len(pending),
            len(rows),
            len(existing),
        )
        return len(rows)

    def find(
        self,
        *,
        user_id: str | None = None,
        category: str | None = None,
        merchant: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[ParsedTransaction]:
        stmt = select(LedgerTransaction)
        if user_id is not None:
            stmt = stmt.where(LedgerTransaction.user_id == user_id)
        if category is not None:
            stmt = stmt.where(LedgerTransaction.category == category)
        if merchant:
            stmt = stmt.where(func.upper(LedgerTransaction.merchant) == merchant.strip().upper())
        if start is not None:
            stmt = stmt.where(LedgerTransaction.date >= start)
        if end is not None:
            stmt = stmt.where(LedgerTransaction.date <= end)
        stmt = stmt.order_by(LedgerTransaction.date, LedgerTransaction.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [_from_row(row) for row in self._session.scalars(stmt)]


__all__ = [
    "InMemoryTransactionRepository",
    "SqlTransactionRepository",
    "TransactionRepository",
    "compute_fingerprint",
]
