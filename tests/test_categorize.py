from __future__ import annotations

import pytest

from sms_ledger import categorize_transaction


def test_salary_credit_short_circuits():
    assert categorize_transaction("Infosys Ltd", "SALARY CREDIT MAR", "credit") == "Salary"
    # Outranks the merchant table, but only for credits.
    assert categorize_transaction("SWIGGY", "STIPEND FOR MARCH", "credit") == "Salary"
    assert categorize_transaction("SWIGGY", "STIPEND FOR MARCH", "debit") == "Food"


@pytest.mark.parametrize(
    ("merchant", "expected"),
    [
        ("swiggy", "Food"),
        ("AMAZON PRIME", "Entertainment"),
        ("DISNEY+ HOTSTAR", "Entertainment"),
        ("PAYTM", "Transfer"),
        ("CRED", "Bills"),
        ("ADANI ELECTRICITY", "Bills"),
    ],
)
def test_exact_merchant_lookup(merchant: str, expected: str):
    assert categorize_transaction(merchant, "", "debit") == expected


def test_substring_lookup_follows_declaration_order():
    # "AMAZON" is declared before "AMAZON PRIME".
    assert categorize_transaction("AMAZON PRIME VIDEO", "", "debit") == "Shopping"


def test_substring_lookup_uses_description():
    got = categorize_transaction("UNKNOWN", "APOLLO PHARMACY KORAMANGALA", "debit")
    assert got == "Health"


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("PIZZA AT MALL", "Food"),
        ("CITY HOSPITAL OPD", "Health"),
        ("MONTHLY RENT LANDLORD", "Rent"),
        ("ZERODHA DEMAT", "Investment"),
    ],
)
def test_keyword_groups(description: str, expected: str):
    assert categorize_transaction("UNKNOWN", description, "debit") == expected


def test_unmapped_merchant_with_store_keyword():
    assert (
        categorize_transaction("4521 LOCAL KIRANA STORE", "POS 4521 LOCAL KIRANA STORE", "debit")
        == "Shopping"
    )


def test_default_is_other():
    assert categorize_transaction("UNKNOWN", "XYZ", "debit") == "Other"
    assert categorize_transaction("", "", "credit") == "Other"
