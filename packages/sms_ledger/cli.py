"""CLI for the ``sms_ledger`` package.

Command handlers (``cmd_*``) hold the I/O logic and return a process exit
code; the Typer commands below are thin wrappers. Environment variables
(``DATABASE_URL``, ``SMS_LEDGER_*``) are loaded from a local ``.env`` with
``python-dotenv`` before any command runs. Parsing and classification live in
``sms_ledger.sms``, ``sms_ledger.merchants`` and ``sms_ledger.categorize``.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv

from .logging_setup import configure_logging, get_logger
from .models import ParsedTransaction

_logger = get_logger("sms_ledger.cli")

_MAX_WORKERS_CAP = 32


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_max_amount(raw: str | None) -> Decimal:
    """Resolve the SMS amount bound from the option, then the environment.

    ``SMS_LEDGER_MAX_AMOUNT`` is consulted when the option is omitted; values
    that are not positive numbers fall back to the library default.
    """

    from .sms import MAX_SMS_AMOUNT

    candidate = raw if raw is not None else os.getenv("SMS_LEDGER_MAX_AMOUNT")
    if not candidate:
        return MAX_SMS_AMOUNT
    try:
        value = Decimal(candidate.replace(",", "").strip())
    except InvalidOperation:
        _logger.warning("cli:invalid_max_amount value=%r", candidate)
        return MAX_SMS_AMOUNT
    if not value.is_finite() or value <= 0:
        _logger.warning("cli:invalid_max_amount value=%r", candidate)
        return MAX_SMS_AMOUNT
    return value


def _resolve_max_workers(n_messages: int, requested: int | None = None) -> int:
    """Resolve the batch parsing concurrency.

    Honors ``requested`` first, then ``SMS_LEDGER_MAX_WORKERS``; caps to
    ``n_messages`` and to 32, and never returns less than 1. Parsing is CPU
    bound, so the default is sequential.
    """

    workers = requested
    if workers is None:
        env_workers = os.getenv("SMS_LEDGER_MAX_WORKERS")
        try:
            workers = int(env_workers) if env_workers else None
        except ValueError:
            workers = None
    if workers is None or workers < 1:
        return 1
    return max(1, min(workers, max(n_messages, 1), _MAX_WORKERS_CAP))


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _persist(
    transactions: Sequence[ParsedTransaction],
    *,
    database_url: str | None,
    user_id: str | None,
) -> int:
    # Local imports keep CLI startup free of SQLAlchemy for pure parsing runs.
    from .db.client import init_schema, session_scope
    from .persistence import SqlTransactionRepository

    init_schema(database_url=database_url)
    with session_scope(database_url=database_url) as session:
        return SqlTransactionRepository(session).store(transactions, user_id=user_id)


# ---- Command handlers -------------------------------------------------------


def cmd_parse_sms(text: str, *, max_amount: str | None = None) -> int:
    """Parse a single SMS and print it as JSON; ``1`` when nothing parses."""

    from .sms import parse_sms

    parsed = parse_sms(text, max_amount=_resolve_max_amount(max_amount))
    if parsed is None:
        print("Error: no transaction found in message.", file=sys.stderr)
        return 1
    _emit_json(parsed.to_dict())
    return 0


def cmd_parse_batch(
    path: str,
    *,
    concurrency: int | None = None,
    max_amount: str | None = None,
    persist: bool = False,
    database_url: str | None = None,
    user_id: str | None = None,
) -> int:
    """Parse blank-line separated SMS messages from ``path`` (``-`` = stdin).

    Prints a JSON array in input order. With ``persist`` the parsed records
    are stored through :class:`~sms_ledger.persistence.SqlTransactionRepository`.
    """

    from .sms import parse_multiple_sms, split_messages

    try:
        text = _read_input(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except (PermissionError, UnicodeDecodeError) as e:
        print(f"Error: cannot read '{path}': {e}", file=sys.stderr)
        return 1

    workers = _resolve_max_workers(len(split_messages(text)), concurrency)
    transactions = parse_multiple_sms(
        text, concurrency=workers, max_amount=_resolve_max_amount(max_amount)
    )

    if persist:
        try:
            inserted = _persist(transactions, database_url=database_url, user_id=user_id)
        except Exception as e:
            print(f"Error: persistence failed: {e}", file=sys.stderr)
            return 1
        _logger.info("cli:stored inserted=%d received=%d", inserted, len(transactions))

    _emit_json([tx.to_dict() for tx in transactions])
    return 0


def cmd_normalize(text: str) -> int:
    from .merchants import normalize_transaction

    _emit_json(normalize_transaction(text).to_dict())
    return 0


def cmd_categorize(merchant: str, description: str, txn_type: str) -> int:
    from .categorize import categorize_transaction

    t = txn_type.strip().lower()
    if t not in {"credit", "debit"}:
        print(f"Error: type must be 'credit' or 'debit', got {txn_type!r}", file=sys.stderr)
        return 1
    print(categorize_transaction(merchant, description, t))  # type: ignore[arg-type]
    return 0


def cmd_enrich_statement(
    path: str,
    *,
    persist: bool = False,
    database_url: str | None = None,
    user_id: str | None = None,
) -> int:
    """Validate and enrich a statement extractor's JSON response."""

    from .statements import load_statement_response

    try:
        text = _read_input(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except (PermissionError, UnicodeDecodeError) as e:
        print(f"Error: cannot read '{path}': {e}", file=sys.stderr)
        return 1

    try:
        transactions = load_statement_response(text)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if persist:
        try:
            inserted = _persist(transactions, database_url=database_url, user_id=user_id)
        except Exception as e:
            print(f"Error: persistence failed: {e}", file=sys.stderr)
            return 1
        _logger.info("cli:stored inserted=%d received=%d", inserted, len(transactions))

    _emit_json([tx.to_dict() for tx in transactions])
    return 0


def cmd_find(
    *,
    database_url: str | None = None,
    user_id: str | None = None,
    category: str | None = None,
    merchant: str | None = None,
    limit: int | None = None,
) -> int:
    from .db.client import init_schema, session_scope
    from .persistence import SqlTransactionRepository

    try:
        init_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            rows = SqlTransactionRepository(session).find(
                user_id=user_id, category=category, merchant=merchant, limit=limit
            )
    except Exception as e:
        print(f"Error: query failed: {e}", file=sys.stderr)
        return 1

    _emit_json([tx.to_dict() for tx in rows])
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse bank SMS alerts and statement rows into categorized transactions. "
        "Loads DATABASE_URL and SMS_LEDGER_* settings from a local .env."
    ),
)

_DATABASE_URL_HELP = "Override DATABASE_URL (falls back to env var)."
_MAX_AMOUNT_HELP = "Reject amounts above this bound (env SMS_LEDGER_MAX_AMOUNT)."


@app.command("parse-sms")
def parse_sms_cmd(
    text: Annotated[str, typer.Argument(help="SMS message body.")],
    max_amount: str | None = typer.Option(None, help=_MAX_AMOUNT_HELP),
) -> None:
    """Parse one SMS message and print the transaction as JSON."""

    raise typer.Exit(cmd_parse_sms(text, max_amount=max_amount))


@app.command("parse-batch")
def parse_batch_cmd(
    path: Annotated[str, typer.Argument(help="File of blank-line separated SMS; '-' for stdin.")],
    concurrency: int | None = typer.Option(
        None, help="Parallel parse workers (env SMS_LEDGER_MAX_WORKERS)."
    ),
    max_amount: str | None = typer.Option(None, help=_MAX_AMOUNT_HELP),
    persist: bool = typer.Option(False, help="Store parsed transactions in the database."),
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
    user_id: str | None = typer.Option(None, help="Owner recorded with stored rows."),
) -> None:
    """Parse many SMS messages and print a JSON array."""

    raise typer.Exit(
        cmd_parse_batch(
            path,
            concurrency=concurrency,
            max_amount=max_amount,
            persist=persist,
            database_url=database_url,
            user_id=user_id,
        )
    )


@app.command("normalize")
def normalize_cmd(
    text: Annotated[str, typer.Argument(help="Raw merchant or description text.")],
) -> None:
    """Print the canonical merchant, channel, tags and clean description."""

    raise typer.Exit(cmd_normalize(text))


@app.command("categorize")
def categorize_cmd(
    merchant: str = typer.Option(..., help="Merchant name (canonical or raw)."),
    description: str = typer.Option("", help="Transaction description."),
    txn_type: str = typer.Option("debit", "--type", help="credit or debit."),
) -> None:
    """Print the category for a merchant/description/type triple."""

    raise typer.Exit(cmd_categorize(merchant, description, txn_type))


@app.command("enrich-statement")
def enrich_statement_cmd(
    path: Annotated[str, typer.Argument(help="JSON response file; '-' for stdin.")],
    persist: bool = typer.Option(False, help="Store enriched transactions in the database."),
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
    user_id: str | None = typer.Option(None, help="Owner recorded with stored rows."),
) -> None:
    """Validate and enrich statement rows produced by an external extractor."""

    raise typer.Exit(
        cmd_enrich_statement(path, persist=persist, database_url=database_url, user_id=user_id)
    )


@app.command("find")
def find_cmd(
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
    user_id: str | None = typer.Option(None, help="Only rows stored for this owner."),
    category: str | None = typer.Option(None, help="Only rows in this category."),
    merchant: str | None = typer.Option(None, help="Only rows for this merchant."),
    limit: int | None = typer.Option(None, min=1, help="Maximum rows to print."),
) -> None:
    """List stored transactions as JSON."""

    raise typer.Exit(
        cmd_find(
            database_url=database_url,
            user_id=user_id,
            category=category,
            merchant=merchant,
            limit=limit,
        )
    )


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    variables that are already set) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
