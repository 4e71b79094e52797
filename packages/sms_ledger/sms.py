"""Parse free-form bank SMS alerts into structured transactions.

The parser is a small ordered rule list: each :class:`SmsTemplate` pairs a
regular expression with an ``extract`` function. Templates are tried in
declaration order and the first one that matches *and* yields a plausible
amount decides the parse. Specific shapes ("debited from A/C ... at
MERCHANT") are declared before generic ones ("Rs X debited"), so the order of
:data:`SMS_TEMPLATES` is significant.

Once a template has produced the amount, direction, account suffix and merchant
fragment, the record is enriched with :mod:`sms_ledger.merchants` and
:mod:`sms_ledger.categorize`. Balance and date are read from the full message.

Nothing here raises on malformed text: :func:`parse_sms` returns ``None`` and
:func:`parse_multiple_sms` drops messages it cannot parse.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from .categorize import categorize_transaction
from .logging_setup import get_logger
from .merchants import detect_channel, normalize_transaction
from .models import ParsedTransaction, TransactionType
from .pmap import p_map, p_map_skip

_logger = get_logger("sms_ledger.sms")

# Amounts above this are regex misfires that swallowed unrelated digits
# (reference numbers, phone numbers). Product-tuned; callers may override.
MAX_SMS_AMOUNT = Decimal("10000000")

# ---------------------------------------------------------------------------
# Template building blocks
# ---------------------------------------------------------------------------

_AMOUNT = r"(?P<amount>[\d,]+\.?\d*)"
_CURRENCY = r"(?:Rs\.?|INR)"
_ACCOUNT = r"(?:A/C|Ac|Account)"
_DATE = r"\d{2}[/-]\d{2}[/-](?:\d{4}|\d{2})(?!\d)"

# Where a captured merchant fragment stops.
_FRAGMENT_END_RE = re.compile(
    rf"(?:^|\s+)(?:on|dated)\s+(?P<date>{_DATE})"
    # A period ends the fragment at end of text or before a capitalized word,
    # so "ST. MARYS" stays whole.
    r"|\.(?:\s+(?-i:(?=[A-Z][a-z]))|\s*$)"
    r"|[,;]"
    r"|(?:^|\s+)(?:Avl|Avbl|Available|Balance|Bal|UPI\s+Ref|Ref|successful|completed|done)\b",
    re.IGNORECASE,
)

_DATE_RE = re.compile(r"(?<!\d)(\d{2})[/-](\d{2})[/-](\d{4}|\d{2})(?!\d)")

BALANCE_PATTERN = re.compile(
    r"\b(?:Available|Avbl|Avl|Balance|Bal)\b[:\s.]*(?:Rs\.?|INR)?\s*(?P<amount>[\d,]+\.?\d*)",
    re.IGNORECASE,
)

_MESSAGE_SPLIT_RE = re.compile(r"\r?\n\s*\r?\n")

_CREDIT_WORDS = frozenset({"credited", "deposited"})


@dataclass(frozen=True, slots=True)
class SmsExtraction:
    """Raw fields pulled out of a message by one template."""

    amount: Decimal | None
    type: TransactionType
    merchant: str = ""
    account_number: str | None = None
    date_str: str | None = None


@dataclass(frozen=True, slots=True)
class SmsTemplate:
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], SmsExtraction]


def _parse_amount(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    s = raw.replace(",", "").strip()
    if not s:
        return None
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def _direction(word: str) -> TransactionType:
    return "credit" if word.lower() in _CREDIT_WORDS else "debit"


def _split_fragment(tail: str | None) -> tuple[str, str | None]:
    """Cut a merchant fragment at its first terminator.

    Returns ``(fragment, date_str)`` where ``date_str`` is set when the
    fragment was terminated by ``on DATE``/``dated DATE``.
    """

    if not tail:
        return "", None
    m = _FRAGMENT_END_RE.search(tail)
    if m is None:
        return tail.strip(" .,:;-"), None
    return tail[: m.start()].strip(" .,:;-"), m.group("date")


# ---------------------------------------------------------------------------
# Extract functions (one per template family)
# ---------------------------------------------------------------------------


def _extract_account_with_merchant(m: re.Match[str]) -> SmsExtraction:
    merchant, date_str = _split_fragment(m.group("tail"))
    return SmsExtraction(
        amount=_parse_amount(m.group("amount")),
        type=_direction(m.group("direction")),
        merchant=merchant,
        account_number=m.group("account"),
        date_str=date_str,
    )


def _extract_account_only(m: re.Match[str]) -> SmsExtraction:
    return SmsExtraction(
        amount=_parse_amount(m.group("amount")),
        type=_direction(m.group("direction")),
        account_number=m.group("account"),
    )


def _extract_counterparty(m: re.Match[str]) -> SmsExtraction:
    # UPI and "Txn of" alerts are reported as debits whatever the connector.
    merchant, date_str = _split_fragment(m.group("tail"))
    return SmsExtraction(
        amount=_parse_amount(m.group("amount")),
        type="debit",
        merchant=merchant,
        date_str=date_str,
    )


def _extract_amount_only(m: re.Match[str]) -> SmsExtraction:
    return SmsExtraction(
        amount=_parse_amount(m.group("amount")),
        type=_direction(m.group("direction")),
    )


SMS_TEMPLATES: tuple[SmsTemplate, ...] = (
    # Rs.500 debited from A/C XXXX1234 at SWIGGY on 01-01-2024
    SmsTemplate(
        name="account_merchant",
        pattern=re.compile(
            rf"Rs\.?\s*{_AMOUNT}\s*(?P<direction>debited|credited)\s*(?:from|to)\s*"
            rf"{_ACCOUNT}\s*[X*]*(?P<account>\d{{4}})\s*(?:(?:at|for|to)\s+|@\s*)?(?P<tail>.*)",
            re.IGNORECASE,
        ),
        extract=_extract_account_with_merchant,
    ),
    # INR 500 debited from SBI A/c X1234
    SmsTemplate(
        name="bank_account",
        pattern=re.compile(
            rf"{_CURRENCY}\s*{_AMOUNT}\s*(?P<direction>debited|credited)\s*(?:from|to)\s*"
            rf"(?:\w+\s*)?{_ACCOUNT}\s*[X*]*(?P<account>\d{{3,4}})",
            re.IGNORECASE,
        ),
        extract=_extract_account_only,
    ),
    # UPI payment of Rs 250 to merchant@ybl successful
    SmsTemplate(
        name="upi_payment",
        pattern=re.compile(
            rf"UPI\s*(?:payment|txn|transaction)?\s*(?:of\s*)?{_CURRENCY}\s*{_AMOUNT}\s*"
            r"(?:to|from)\s+(?P<tail>.*)",
            re.IGNORECASE,
        ),
        extract=_extract_counterparty,
    ),
    # Your A/c XX1234 credited with Rs 5,000
    SmsTemplate(
        name="account_first",
        pattern=re.compile(
            rf"(?:Your\s*)?{_ACCOUNT}\s*[X*]*(?P<account>\d{{4}})\s*(?:is\s+|has\s+been\s+)?"
            rf"(?P<direction>credited|debited)\s*(?:with|by|for)?\s*{_CURRENCY}\s*{_AMOUNT}",
            re.IGNORECASE,
        ),
        extract=_extract_account_only,
    ),
    # Amount Rs 500 debited
    SmsTemplate(
        name="amount_only",
        pattern=re.compile(
            rf"(?:Amount\s*)?{_CURRENCY}\s*{_AMOUNT}\s*(?:has\s+been\s+|is\s+)?"
            r"(?P<direction>debited|credited|withdrawn|deposited)",
            re.IGNORECASE,
        ),
        extract=_extract_amount_only,
    ),
    # Txn of Rs 500 at DMART on 02/03/24
    SmsTemplate(
        name="transaction_of",
        pattern=re.compile(
            rf"(?:Transaction|Txn|Payment)\s*(?:of\s*)?{_CURRENCY}\s*{_AMOUNT}\s*"
            r"(?:(?:at|to|from)\s+)?(?P<tail>.*)",
            re.IGNORECASE,
        ),
        extract=_extract_counterparty,
    ),
)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _to_date(day: str, month: str, year: str) -> date | None:
    y = int(year)
    if len(year) == 2:
        y = 2000 + y if y < 50 else 1900 + y
    try:
        return date(y, int(month), int(day))
    except ValueError:
        return None


def extract_date(text: str, date_str: str | None = None, *, today: date | None = None) -> date:
    """Resolve the transaction date of a message.

    Prefers ``date_str`` (captured by a template), then the first valid
    ``DD/MM/YYYY``/``DD-MM-YY`` date in ``text``, then ``today`` (defaults to
    the current date). Two-digit years below 50 are 20xx, otherwise 19xx.
    """

    if date_str:
        m = _DATE_RE.search(date_str)
        if m is not None:
            resolved = _to_date(*m.groups())
            if resolved is not None:
                return resolved

    for m in _DATE_RE.finditer(text):
        resolved = _to_date(*m.groups())
        if resolved is not None:
            return resolved

    return today or date.today()


def extract_balance(text: str) -> Decimal | None:
    """Return the advertised post-transaction balance, when present."""

    for m in BALANCE_PATTERN.finditer(text):
        value = _parse_amount(m.group("amount"))
        if value is not None:
            return value
    return None


def split_messages(text: str) -> list[str]:
    """Split a pasted blob on blank lines (LF or CRLF) and drop empty parts."""

    return [part.strip() for part in _MESSAGE_SPLIT_RE.split(text) if part.strip()]


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def parse_sms(
    text: str,
    *,
    max_amount: Decimal = MAX_SMS_AMOUNT,
    today: date | None = None,
) -> ParsedTransaction | None:
    """Parse one SMS message; ``None`` when no template yields a valid amount."""

    trimmed = text.strip()
    if not trimmed:
        return None

    for template in SMS_TEMPLATES:
        match = template.pattern.search(trimmed)
        if match is None:
            continue
        extracted = template.extract(match)
        amount = extracted.amount
        if not amount or amount <= 0 or amount > max_amount:
            _logger.debug(
                "parse_sms:amount_rejected template=%s amount=%s", template.name, amount
            )
            continue

        normalized = normalize_transaction(extracted.merchant or trimmed)
        category = categorize_transaction(normalized.merchant, trimmed, extracted.type)
        _logger.debug(
            "parse_sms:matched template=%s merchant=%s category=%s",
            template.name,
            normalized.merchant,
            category,
        )
        return ParsedTransaction(
            amount=amount,
            type=extracted.type,
            merchant=normalized.merchant,
            date=extract_date(trimmed, extracted.date_str, today=today),
            description=trimmed,
            channel=detect_channel(trimmed),
            category=category,
            tags=normalized.tags,
            account_number=extracted.account_number,
            balance=extract_balance(trimmed),
        )

    _logger.debug("parse_sms:no_match length=%d", len(trimmed))
    return None


def parse_multiple_sms(
    text: str,
    *,
    concurrency: int = 1,
    max_amount: Decimal = MAX_SMS_AMOUNT,
    today: date | None = None,
) -> list[ParsedTransaction]:
    """Parse every blank-line separated message in ``text``.

    Unparseable messages are skipped; one bad message never aborts the batch.
    Output order follows input order for any ``concurrency``.
    """

    messages = split_messages(text)
    resolved_today = today or date.today()

    def _parse_one(message: str) -> ParsedTransaction | object:
        try:
            parsed = parse_sms(message, max_amount=max_amount, today=resolved_today)
        except Exception as e:  # noqa: BLE001
            _logger.warning(
                "parse_multiple_sms:message_failed error=%s detail=%s", e.__class__.__name__, e
            )
            return p_map_skip
        return p_map_skip if parsed is None else parsed

    results: list[ParsedTransaction] = p_map(messages, _parse_one, concurrency=concurrency)
    _logger.info(
        "parse_multiple_sms:done messages=%d parsed=%d skipped=%d",
        len(messages),
        len(results),
        len(messages) - len(results),
    )
    return results


__all__ = [
    "BALANCE_PATTERN",
    "MAX_SMS_AMOUNT",
    "SMS_TEMPLATES",
    "SmsExtraction",
    "SmsTemplate",
    "extract_balance",
    "extract_date",
    "parse_multiple_sms",
    "parse_sms",
    "split_messages",
]
