"""Deterministic fallback enrichment for model-extracted statement rows.

Bank statement PDFs are structured by an external generative model that
returns a JSON array of rows. Its output is untrusted: fields may be missing,
categories may be invented, and the array may arrive wrapped in Markdown code
fences. This module validates each row with pydantic and fills the gaps with
the same normalizer and classifier used for SMS alerts.
"""

from __future__ import annotations

import datetime as dt
import json
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .categorize import categorize_transaction
from .logging_setup import get_logger
from .merchants import detect_channel, normalize_transaction
from .models import CATEGORIES, CHANNELS, Category, Channel, ParsedTransaction, TransactionType

_logger = get_logger("sms_ledger.statements")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class StatementRow(BaseModel):
    """One transaction row as returned by the statement extractor."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    date: dt.date
    description: str
    amount: Decimal
    type: TransactionType
    merchant: str | None = None
    category: Category | None = None
    channel: Channel | None = None
    balance: Decimal | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Any:
        # Models emit full ISO timestamps as often as bare dates.
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return dt.datetime.fromisoformat(v.strip().replace("Z", "+00:00")).date()
        return v

    @field_validator("description")
    @classmethod
    def _description_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("description must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("amount must be positive")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("merchant", mode="before")
    @classmethod
    def _blank_merchant(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, v: Any) -> Any:
        return v if v in CATEGORIES else None

    @field_validator("channel", mode="before")
    @classmethod
    def _known_channel(cls, v: Any) -> Any:
        return v if v in CHANNELS else None


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences (```json ... ```) around a model response."""

    return _FENCE_RE.sub("", text).strip()


def enrich_statement_row(row: StatementRow) -> ParsedTransaction:
    """Fill merchant, category, channel and tags the extractor left out."""

    normalized = normalize_transaction(row.description)
    category = row.category or categorize_transaction(
        normalized.merchant, row.description, row.type
    )
    return ParsedTransaction(
        amount=row.amount,
        type=row.type,
        merchant=row.merchant or normalized.merchant,
        date=row.date,
        description=row.description,
        channel=row.channel or detect_channel(row.description),
        category=category,
        tags=normalized.tags,
        balance=row.balance,
    )


def enrich_statement_rows(rows: Iterable[Mapping[str, Any]]) -> list[ParsedTransaction]:
    """Validate and enrich rows; invalid rows are logged and skipped."""

    out: list[ParsedTransaction] = []
    seen = 0
    for idx, raw in enumerate(rows):
        seen += 1
        try:
            row = StatementRow.model_validate(raw)
        except ValidationError as e:
            _logger.warning(
                "enrich_statement_rows:row_invalid idx=%d errors=%d", idx, e.error_count()
            )
            continue
        out.append(enrich_statement_row(row))
    _logger.info("enrich_statement_rows:done rows=%d enriched=%d", seen, len(out))
    return out


def load_statement_response(text: str) -> list[ParsedTransaction]:
    """Decode a model response (a JSON array, fenced or not) into transactions.

    Raises
    ------
    ValueError
        When the response is not valid JSON or not a JSON array of objects.
    """

    cleaned = strip_code_fences(text)
    try:
        decoded = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"statement response is not valid JSON: {exc}") from exc
    if not isinstance(decoded, list):
        raise ValueError("statement response is not a JSON array")
    if not all(isinstance(item, Mapping) for item in decoded):
        raise ValueError("statement response must contain only JSON objects")
    return enrich_statement_rows(decoded)


__all__ = [
    "StatementRow",
    "enrich_statement_row",
    "enrich_statement_rows",
    "load_statement_response",
    "strip_code_fences",
]
