"""Merchant canonicalization, channel detection and tag generation.

Raw merchant descriptors from bank SMS alerts and statements are noisy
("SWIGGY*FOOD", "UPI/OLACABS/ref..."). This module maps them to a canonical
merchant name, detects the payment rail, derives keyword tags and produces a
readable description.

All lookup tables are ordered: the first matching entry wins, so the position
of an entry is part of its meaning. Do not sort them.
"""

from __future__ import annotations

import re

from .models import Channel, NormalizedTransaction

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

# (substring pattern, canonical name), matched against the upper-cased text.
MERCHANT_MAPPINGS: tuple[tuple[str, str], ...] = (
    # Food & delivery
    ("SWIGGY", "SWIGGY"),
    ("SWIGGY INSTAMART", "SWIGGY"),
    ("SWIGGY*FOOD", "SWIGGY"),
    ("SWIGGYINSTAMART", "SWIGGY"),
    ("ZOMATO", "ZOMATO"),
    ("ZOMATO*", "ZOMATO"),
    ("ZOMATO HYPERPURE", "ZOMATO"),
    ("BLINKIT", "BLINKIT"),
    ("GROFERS", "BLINKIT"),
    ("ZEPTO", "ZEPTO"),
    ("DUNZO", "DUNZO"),
    ("DOMINOS", "DOMINOS"),
    ("MCDONALDS", "MCDONALDS"),
    ("MCD", "MCDONALDS"),
    ("KFC", "KFC"),
    ("BURGER KING", "BURGER KING"),
    ("STARBUCKS", "STARBUCKS"),
    ("CCD", "CAFE COFFEE DAY"),
    ("CAFE COFFEE DAY", "CAFE COFFEE DAY"),
    # Ride & travel
    ("OLA", "OLA"),
    ("OLACABS", "OLA"),
    ("UBER", "UBER"),
    ("UBER INDIA", "UBER"),
    ("RAPIDO", "RAPIDO"),
    ("IRCTC", "IRCTC"),
    ("MAKEMYTRIP", "MAKEMYTRIP"),
    ("MMT", "MAKEMYTRIP"),
    ("GOIBIBO", "GOIBIBO"),
    ("REDBUS", "REDBUS"),
    ("CLEARTRIP", "CLEARTRIP"),
    # Shopping
    ("AMAZON", "AMAZON"),
    ("AMAZON PAY", "AMAZON"),
    ("AMZN", "AMAZON"),
    ("FLIPKART", "FLIPKART"),
    ("MYNTRA", "MYNTRA"),
    ("AJIO", "AJIO"),
    ("NYKAA", "NYKAA"),
    ("MEESHO", "MEESHO"),
    ("SNAPDEAL", "SNAPDEAL"),
    ("BIGBASKET", "BIGBASKET"),
    ("DMART", "DMART"),
    ("RELIANCE", "RELIANCE"),
    # Entertainment
    ("NETFLIX", "NETFLIX"),
    ("HOTSTAR", "DISNEY+ HOTSTAR"),
    ("DISNEY", "DISNEY+ HOTSTAR"),
    ("PRIME VIDEO", "AMAZON PRIME"),
    ("PRIME", "AMAZON PRIME"),
    ("SPOTIFY", "SPOTIFY"),
    ("GAANA", "GAANA"),
    ("YOUTUBE", "YOUTUBE"),
    ("BOOKMYSHOW", "BOOKMYSHOW"),
    ("PVR", "PVR"),
    ("INOX", "INOX"),
    # Bills & utilities
    ("AIRTEL", "AIRTEL"),
    ("JIO", "JIO"),
    ("RELIANCE JIO", "JIO"),
    ("VI", "VI"),
    ("VODAFONE", "VI"),
    ("IDEA", "VI"),
    ("BSNL", "BSNL"),
    ("ELECTRICITY", "ELECTRICITY"),
    ("GAS", "GAS"),
    ("WATER", "WATER"),
    ("TATA POWER", "TATA POWER"),
    ("ADANI", "ADANI ELECTRICITY"),
    # Payments & wallets
    ("PAYTM", "PAYTM"),
    ("PHONEPE", "PHONEPE"),
    ("GPAY", "GOOGLE PAY"),
    ("GOOGLEPAY", "GOOGLE PAY"),
    ("GOOGLE PAY", "GOOGLE PAY"),
    ("BHIM", "BHIM"),
    ("CRED", "CRED"),
)

# Banking boilerplate removed before falling back to the raw descriptor.
NOISE_WORDS: tuple[str, ...] = (
    "POS",
    "UPI-",
    "UPI/",
    "NEFT-",
    "NEFT/",
    "IMPS-",
    "IMPS/",
    "RTGS-",
    "RTGS/",
    "ATM-",
    "ATM/",
    "VIA",
    "REF",
    "TXN",
    "TRANSACTION",
    "DEBIT",
    "CREDIT",
    "DR",
    "CR",
    "INR",
    "RS",
    "RS.",
    "PAYMENT",
    "PAID",
    "TO",
    "FROM",
    "FOR",
    "THE",
    "AND",
    "*",
    "-",
    "/",
    "@",
)

# (tag, keywords); every group is checked independently.
TAG_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "food",
        ("SWIGGY", "ZOMATO", "FOOD", "RESTAURANT", "CAFE", "COFFEE", "MCDONALDS", "KFC", "DOMINOS"),
    ),
    ("groceries", ("BIGBASKET", "DMART", "GROFERS", "BLINKIT", "ZEPTO", "INSTAMART", "GROCERY")),
    ("subscription", ("NETFLIX", "SPOTIFY", "HOTSTAR", "PRIME", "SUBSCRIPTION")),
    ("recharge", ("AIRTEL", "JIO", "VI", "VODAFONE", "RECHARGE", "PREPAID")),
    ("travel", ("OLA", "UBER", "RAPIDO", "IRCTC", "FLIGHT", "TRAIN", "BUS", "TRAVEL")),
)

# (keywords, channel) in priority order; the first hit wins.
CHANNEL_RULES: tuple[tuple[tuple[str, ...], Channel], ...] = (
    (("UPI", "@"), "UPI"),
    (("POS", "CARD", "VISA", "MASTERCARD"), "Card"),
    (("NEFT", "RTGS", "IMPS"), "NetBanking"),
    (("ATM", "CASH"), "Cash"),
)

UNKNOWN_MERCHANT = "UNKNOWN"


def _noise_pattern(word: str) -> re.Pattern[str]:
    # Word characters at either edge must not touch another word character,
    # so "TO" is removed from "PAID TO X" but not from "TOMATO".
    body = re.escape(word)
    if word[:1].isalnum():
        body = r"(?<![A-Za-z0-9])" + body
    if word[-1:].isalnum():
        body = body + r"(?![A-Za-z0-9])"
    return re.compile(body, re.IGNORECASE)


_NOISE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(_noise_pattern(w) for w in NOISE_WORDS)
_WHITESPACE_RE = re.compile(r"\s+")
_TXN_ID_RE = re.compile(r"[A-Z0-9]{12,}", re.IGNORECASE)


def _strip_noise(text: str, replacement: str) -> str:
    for pattern in _NOISE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def normalize_merchant(raw_text: str) -> str:
    """Return the canonical merchant name for ``raw_text``.

    The first :data:`MERCHANT_MAPPINGS` entry whose pattern occurs in the
    upper-cased text decides the result. Otherwise the noise words are removed
    and the remainder is upper-cased; ``"UNKNOWN"`` when no letter or digit
    survives.
    """

    upper = raw_text.upper()
    for pattern, canonical in MERCHANT_MAPPINGS:
        if pattern in upper:
            return canonical

    cleaned = _strip_noise(raw_text, "").strip()
    if not any(c.isalnum() for c in cleaned):
        return UNKNOWN_MERCHANT
    return cleaned.upper()


def clean_description(raw_text: str) -> str:
    """Return ``raw_text`` without banking jargon and long transaction ids."""

    cleaned = _strip_noise(raw_text, " ")
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    cleaned = _TXN_ID_RE.sub("", cleaned)
    return cleaned.strip()


def detect_channel(text: str) -> Channel:
    upper = text.upper()
    for keywords, channel in CHANNEL_RULES:
        if any(k in upper for k in keywords):
            return channel
    return "Other"


def generate_tags(merchant: str, description: str) -> list[str]:
    """Return every tag whose keyword group occurs in merchant + description."""

    combined = f"{merchant} {description}".upper()
    return [tag for tag, keywords in TAG_GROUPS if any(k in combined for k in keywords)]


def normalize_transaction(raw_text: str) -> NormalizedTransaction:
    merchant = normalize_merchant(raw_text)
    return NormalizedTransaction(
        merchant=merchant,
        channel=detect_channel(raw_text),
        tags=tuple(generate_tags(merchant, raw_text)),
        clean_description=clean_description(raw_text),
    )


__all__ = [
    "CHANNEL_RULES",
    "MERCHANT_MAPPINGS",
    "NOISE_WORDS",
    "TAG_GROUPS",
    "UNKNOWN_MERCHANT",
    "clean_description",
    "detect_channel",
    "generate_tags",
    "normalize_merchant",
    "normalize_transaction",
]
