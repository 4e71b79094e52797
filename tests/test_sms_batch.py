from __future__ import annotations

import textwrap
from datetime import date
from decimal import Decimal

import pytest

import sms_ledger.sms as sms_mod
from sms_ledger import parse_multiple_sms
from sms_ledger.sms import split_messages

TODAY = date(2025, 1, 2)


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n").rstrip()


BATCH = _dedent(
    """
    Rs.500.00 debited from A/C XXXX1234 at SWIGGY on 01-01-2024. Avl Bal Rs.25,000.00

    Your OTP is 123456. Do not share it.

    UPI payment of Rs 250.00 to zomato@paytm successful. Ref No 12345

    Txn of Rs 1,299.00 at DMART on 02/03/24
    """
)


def test_batch_skips_unparseable_and_keeps_order():
    parsed = parse_multiple_sms(BATCH, today=TODAY)

    assert [p.merchant for p in parsed] == ["SWIGGY", "ZOMATO", "DMART"]
    assert [p.amount for p in parsed] == [Decimal("500"), Decimal("250"), Decimal("1299")]


def test_batch_accepts_crlf_and_extra_blank_lines():
    crlf = BATCH.replace("\n", "\r\n")
    padded = BATCH.replace("\n\n", "\n  \n\n\t\n")

    expected = parse_multiple_sms(BATCH, today=TODAY)
    assert parse_multiple_sms(crlf, today=TODAY) == expected
    assert parse_multiple_sms(padded, today=TODAY) == expected


def test_concurrent_batch_matches_sequential():
    messages = "\n\n".join([BATCH] * 8)

    sequential = parse_multiple_sms(messages, today=TODAY)
    concurrent = parse_multiple_sms(messages, concurrency=4, today=TODAY)

    assert len(sequential) == 24
    assert concurrent == sequential


@pytest.mark.parametrize("text", ["", "   ", "\n\n\r\n"])
def test_empty_batch(text: str):
    assert split_messages(text) == []
    assert parse_multiple_sms(text, today=TODAY) == []


def test_one_failing_message_does_not_abort_batch(monkeypatch: pytest.MonkeyPatch):
    real_parse = sms_mod.parse_sms

    def flaky(text: str, **kwargs):
        if "zomato" in text:
            raise RuntimeError("boom")
        return real_parse(text, **kwargs)

    monkeypatch.setattr(sms_mod, "parse_sms", flaky)

    parsed = parse_multiple_sms(BATCH, today=TODAY)
    assert [p.merchant for p in parsed] == ["SWIGGY", "DMART"]


def test_batch_applies_amount_bound():
    text = "Rs 15000000 debited from A/c XX1234\n\nRs 500 debited from A/c XX1234"

    parsed = parse_multiple_sms(text, today=TODAY)
    assert [p.amount for p in parsed] == [Decimal("500")]

    raised = parse_multiple_sms(text, max_amount=Decimal("20000000"), today=TODAY)
    assert len(raised) == 2


def test_batch_uses_one_fallback_date():
    parsed = parse_multiple_sms("Rs 10 debited\n\nRs 20 credited", today=TODAY)

    assert [(p.amount, p.type, p.date) for p in parsed] == [
        (Decimal("10"), "debit", TODAY),
        (Decimal("20"), "credit", TODAY),
    ]
