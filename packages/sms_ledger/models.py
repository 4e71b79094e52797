"""Data models and type aliases for ``sms_ledger``.

Records produced by the enrichment pipeline are frozen dataclasses: they are
computed from text, never mutated, and carry no identity. Data that arrives
from outside the package (rows extracted from bank statements by an external
model) is validated with pydantic in ``sms_ledger.statements``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

type Channel = Literal["UPI", "Card", "NetBanking", "Cash", "Other"]
"""Payment rail of a transaction. ``Other`` is the default."""

type Category = Literal[
    "Food",
    "Travel",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Education",
    "Rent",
    "Salary",
    "Investment",
    "Transfer",
    "Other",
]
"""Spending/income bucket of a transaction. ``Other`` is the default."""

type TransactionType = Literal["credit", "debit"]

CHANNELS: tuple[str, ...] = ("UPI", "Card", "NetBanking", "Cash", "Other")

CATEGORIES: tuple[str, ...] = (
    "Food",
    "Travel",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Education",
    "Rent",
    "Salary",
    "Investment",
    "Transfer",
    "Other",
)

TRANSACTION_TYPES: tuple[str, ...] = ("credit", "debit")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedTransaction:
    """Enrichment bundle for one raw description.

    ``merchant`` is the canonical merchant name (never empty), ``channel`` the
    detected payment rail, ``tags`` the non-exclusive keyword labels in group
    declaration order, and ``clean_description`` a human-readable rendition of
    the raw text with banking jargon and transaction ids removed.
    """

    merchant: str
    channel: Channel
    tags: tuple[str, ...]
    clean_description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "merchant": self.merchant,
            "channel": self.channel,
            "tags": list(self.tags),
            "cleanDescription": self.clean_description,
        }


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """A fully structured transaction assembled from SMS or statement text.

    ``description`` keeps the original raw text for audit and search.
    ``account_number`` holds the last digits of the account when the message
    advertises them, and ``balance`` the post-transaction balance when known.
    """

    amount: Decimal
    type: TransactionType
    merchant: str
    date: date
    description: str
    channel: Channel
    category: Category
    tags: tuple[str, ...] = ()
    account_number: str | None = None
    balance: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping using the boundary field names."""

        out: dict[str, Any] = {
            "amount": float(self.amount),
            "type": self.type,
            "merchant": self.merchant,
            "accountNumber": self.account_number,
            "date": self.date.isoformat(),
            "description": self.description,
            "channel": self.channel,
            "category": self.category,
            "tags": list(self.tags),
            "balance": float(self.balance) if self.balance is not None else None,
        }
        return out


__all__ = [
    "CATEGORIES",
    "CHANNELS",
    "TRANSACTION_TYPES",
    "Category",
    "Channel",
    "NormalizedTransaction",
    "ParsedTransaction",
    "TransactionType",
]
