"""Public interface for the ``sms_ledger`` package.

Re-exports the parsing, normalization and categorization operations and the
record types as the stable import surface. Persistence helpers live in
``sms_ledger.persistence`` and ``sms_ledger.db`` and are imported explicitly
so that pure parsing does not pull in SQLAlchemy.
"""

from .categorize import categorize_transaction
from .merchants import (
    clean_description,
    detect_channel,
    generate_tags,
    normalize_merchant,
    normalize_transaction,
)
from .models import (
    CATEGORIES,
    CHANNELS,
    Category,
    Channel,
    NormalizedTransaction,
    ParsedTransaction,
    TransactionType,
)
from .sms import MAX_SMS_AMOUNT, parse_multiple_sms, parse_sms
from .statements import StatementRow, enrich_statement_rows, load_statement_response

__all__ = [
    # Operations
    "categorize_transaction",
    "clean_description",
    "detect_channel",
    "enrich_statement_rows",
    "generate_tags",
    "load_statement_response",
    "normalize_merchant",
    "normalize_transaction",
    "parse_multiple_sms",
    "parse_sms",
    # Models / types
    "CATEGORIES",
    "CHANNELS",
    "MAX_SMS_AMOUNT",
    "Category",
    "Channel",
    "NormalizedTransaction",
    "ParsedTransaction",
    "StatementRow",
    "TransactionType",
]
