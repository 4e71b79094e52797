from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from sms_ledger.statements import (
    StatementRow,
    enrich_statement_row,
    enrich_statement_rows,
    load_statement_response,
    strip_code_fences,
)


def test_row_fields_from_extractor_are_kept():
    row = StatementRow.model_validate(
        {
            "date": "2024-03-04",
            "description": "Instamart grocery order",
            "amount": 499.5,
            "type": "debit",
            "merchant": "  Swiggy Instamart ",
            "category": "Food",
            "channel": "UPI",
        }
    )
    tx = enrich_statement_row(row)

    assert tx.merchant == "Swiggy Instamart"
    assert tx.category == "Food"
    assert tx.channel == "UPI"
    assert tx.amount == Decimal("499.5")
    assert tx.date == date(2024, 3, 4)
    assert tx.tags == ("groceries",)


def test_missing_fields_are_filled_deterministically():
    [tx] = enrich_statement_rows(
        [
            {
                "date": "2024-03-05",
                "description": "POS 4411 SWIGGY BANGALORE",
                "amount": 450,
                "type": "debit",
            }
        ]
    )

    assert tx.merchant == "SWIGGY"
    assert tx.category == "Food"
    assert tx.channel == "Card"
    assert tx.tags == ("food",)
    assert tx.balance is None


def test_invented_category_and_channel_are_replaced():
    [tx] = enrich_statement_rows(
        [
            {
                "date": "2024-03-06",
                "description": "BIGBASKET ORDER 1123",
                "amount": "1299.50",
                "type": "DEBIT",
                "category": "Groceries",
                "channel": "Wire",
                "merchant": "",
                "balance": "10250.00",
            }
        ]
    )

    assert tx.type == "debit"
    assert tx.merchant == "BIGBASKET"
    assert tx.category == "Food"
    assert tx.channel == "Other"
    assert tx.balance == Decimal("10250.00")


def test_timestamp_dates_are_truncated():
    row = StatementRow.model_validate(
        {
            "date": "2024-03-05T10:00:00.000Z",
            "description": "NETFLIX",
            "amount": 649,
            "type": "debit",
        }
    )
    assert row.date == date(2024, 3, 5)


@pytest.mark.parametrize(
    "raw",
    [
        {"date": "2024-03-05", "description": "X", "amount": -5, "type": "debit"},
        {"date": "2024-03-05", "description": "  ", "amount": 5, "type": "debit"},
        {"date": "2024-03-05", "amount": 5, "type": "debit"},
        {"date": "not-a-date", "description": "X", "amount": 5, "type": "debit"},
        {"date": "2024-03-05", "description": "X", "amount": 5, "type": "refund"},
    ],
)
def test_invalid_rows_are_skipped(raw: dict):
    good = {"date": "2024-03-05", "description": "ZOMATO", "amount": 100, "type": "debit"}

    out = enrich_statement_rows([raw, good])
    assert [tx.merchant for tx in out] == ["ZOMATO"]


def test_strip_code_fences():
    assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'
    assert strip_code_fences("[]") == "[]"


def test_load_fenced_response():
    rows = [
        {"date": "2024-01-15", "description": "UPI/OLACABS/ride", "amount": 250, "type": "debit"},
        {
            "date": "2024-01-31",
            "description": "NEFT SALARY JAN",
            "amount": 85000,
            "type": "credit",
            "balance": 120000,
        },
    ]
    text = "```json\n" + json.dumps(rows) + "\n```"

    out = load_statement_response(text)

    assert [(tx.merchant, tx.category, tx.channel) for tx in out] == [
        ("OLA", "Travel", "UPI"),
        ("NEFT SALARY JAN", "Salary", "NetBanking"),
    ]
    assert out[1].balance == Decimal("120000")


@pytest.mark.parametrize("text", ["not json", '{"date": "2024-01-01"}', "[1, 2]"])
def test_load_rejects_non_array_responses(text: str):
    with pytest.raises(ValueError):
        load_statement_response(text)
