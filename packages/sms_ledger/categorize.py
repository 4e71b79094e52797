"""Rule-based category inference for enriched transactions.

Resolution order for :func:`categorize_transaction`:

1. Salary short-circuit: a credit whose merchant/description mentions
   ``SALARY``, ``STIPEND`` or ``WAGE`` is ``Salary``.
2. Exact lookup of the upper-cased merchant in :data:`CATEGORY_RULES`.
3. Substring lookup over :data:`CATEGORY_RULES` in declaration order, against
   the merchant and the combined merchant + description text.
4. Keyword groups (:data:`KEYWORD_CATEGORIES`) in declaration order.
5. ``Other``.

Curated merchant identity always outranks generic keyword heuristics.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .models import Category, TransactionType

# Canonical merchant -> category. Declaration order drives the substring pass.
CATEGORY_RULES: Mapping[str, Category] = MappingProxyType(
    {
        # Food
        "SWIGGY": "Food",
        "ZOMATO": "Food",
        "MCDONALDS": "Food",
        "KFC": "Food",
        "DOMINOS": "Food",
        "BURGER KING": "Food",
        "STARBUCKS": "Food",
        "CAFE COFFEE DAY": "Food",
        "BLINKIT": "Food",
        "ZEPTO": "Food",
        "DUNZO": "Food",
        "BIGBASKET": "Food",
        # Travel
        "OLA": "Travel",
        "UBER": "Travel",
        "RAPIDO": "Travel",
        "IRCTC": "Travel",
        "MAKEMYTRIP": "Travel",
        "GOIBIBO": "Travel",
        "REDBUS": "Travel",
        "CLEARTRIP": "Travel",
        # Shopping
        "AMAZON": "Shopping",
        "FLIPKART": "Shopping",
        "MYNTRA": "Shopping",
        "AJIO": "Shopping",
        "NYKAA": "Shopping",
        "MEESHO": "Shopping",
        "SNAPDEAL": "Shopping",
        "DMART": "Shopping",
        "RELIANCE": "Shopping",
        # Entertainment
        "NETFLIX": "Entertainment",
        "DISNEY+ HOTSTAR": "Entertainment",
        "AMAZON PRIME": "Entertainment",
        "SPOTIFY": "Entertainment",
        "GAANA": "Entertainment",
        "YOUTUBE": "Entertainment",
        "BOOKMYSHOW": "Entertainment",
        "PVR": "Entertainment",
        "INOX": "Entertainment",
        # Bills
        "AIRTEL": "Bills",
        "JIO": "Bills",
        "VI": "Bills",
        "BSNL": "Bills",
        "ELECTRICITY": "Bills",
        "GAS": "Bills",
        "WATER": "Bills",
        "TATA POWER": "Bills",
        "ADANI ELECTRICITY": "Bills",
        # Health
        "APOLLO": "Health",
        "PHARMEASY": "Health",
        "1MG": "Health",
        "NETMEDS": "Health",
        "PRACTO": "Health",
        # Education
        "COURSERA": "Education",
        "UDEMY": "Education",
        "UNACADEMY": "Education",
        "BYJUS": "Education",
        # Payments/wallets are usually transfers
        "PAYTM": "Transfer",
        "PHONEPE": "Transfer",
        "GOOGLE PAY": "Transfer",
        "BHIM": "Transfer",
        "CRED": "Bills",
    }
)

# (keywords, category) evaluated in order after the merchant table.
KEYWORD_CATEGORIES: tuple[tuple[tuple[str, ...], Category], ...] = (
    (("FOOD", "RESTAURANT", "HOTEL", "CAFE", "BAKERY", "PIZZA", "BURGER"), "Food"),
    (
        ("FLIGHT", "TRAIN", "BUS", "TAXI", "CAB", "METRO", "PETROL", "FUEL", "PARKING"),
        "Travel",
    ),
    (("MALL", "STORE", "SHOP", "RETAIL", "MARKET", "FASHION"), "Shopping"),
    (("MOVIE", "CINEMA", "THEATRE", "GAME", "GAMING"), "Entertainment"),
    (("BILL", "ELECTRICITY", "WATER", "GAS", "RECHARGE", "PREPAID", "POSTPAID"), "Bills"),
    (
        ("HOSPITAL", "CLINIC", "DOCTOR", "MEDICAL", "PHARMACY", "MEDICINE", "HEALTH"),
        "Health",
    ),
    (("SCHOOL", "COLLEGE", "UNIVERSITY", "COURSE", "TUITION", "EXAM", "BOOK"), "Education"),
    (("RENT", "HOUSE", "FLAT", "APARTMENT", "LANDLORD"), "Rent"),
    (("SALARY", "WAGE", "STIPEND", "INCOME"), "Salary"),
    (
        ("SIP", "MUTUAL FUND", "STOCK", "SHARE", "DEMAT", "INVESTMENT", "FD", "RD"),
        "Investment",
    ),
    (("TRANSFER", "NEFT", "RTGS", "IMPS", "SENT TO", "RECEIVED FROM"), "Transfer"),
)

SALARY_KEYWORDS: tuple[str, ...] = ("SALARY", "STIPEND", "WAGE")


def categorize_transaction(
    merchant: str,
    description: str,
    txn_type: TransactionType,
) -> Category:
    """Map a ``(merchant, description, type)`` triple to a category."""

    upper_merchant = merchant.upper()
    combined = f"{upper_merchant} {description.upper()}"

    if txn_type == "credit" and any(k in combined for k in SALARY_KEYWORDS):
        return "Salary"

    exact = CATEGORY_RULES.get(upper_merchant)
    if exact is not None:
        return exact

    for name, category in CATEGORY_RULES.items():
        if name in upper_merchant or name in combined:
            return category

    for keywords, category in KEYWORD_CATEGORIES:
        if any(k in combined for k in keywords):
            return category

    return "Other"


__all__ = [
    "CATEGORY_RULES",
    "KEYWORD_CATEGORIES",
    "SALARY_KEYWORDS",
    "categorize_transaction",
]
