"""Utility functions shared across the invoice studio package."""
from __future__ import annotations

import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Dict, Optional, Tuple

from dateutil import parser

CENT = Decimal("0.01")
ZERO = Decimal("0")

# code -> (label, symbol)
CURRENCIES: Dict[str, Tuple[str, str]] = {
    "AED": ("UAE Dirham", "dh"),
    "USD": ("US Dollar", "$"),
    "EUR": ("Euro", "€"),
    "GBP": ("British Pound", "£"),
    "INR": ("Indian Rupee", "₹"),
    "CAD": ("Canadian Dollar", "$"),
    "AUD": ("Australian Dollar", "$"),
    "JPY": ("Japanese Yen", "¥"),
    "CNY": ("Chinese Yuan", "¥"),
    "SGD": ("Singapore Dollar", "$"),
    "CHF": ("Swiss Franc", "Fr"),
    "ZAR": ("South African Rand", "R"),
    "SAR": ("Saudi Riyal", "﷼"),
}

# Symbols printed directly in front of the amount; everything else is shown as "<CODE> 1.00".
PREFIX_SYMBOLS = {"$", "€", "£", "₹", "¥"}

_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_date(value: str) -> Optional[date]:
    """Parse a date string into a date object; returns None on failure."""
    if not value:
        return None
    try:
        return parser.parse(value, dayfirst=False, yearfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        try:
            return parser.parse(value, dayfirst=True, yearfirst=True).date()
        except (ValueError, TypeError, OverflowError):
            return None


def coerce_number(value: object) -> Decimal:
    """Lenient numeric coercion for user-entered quantities, prices and rates.

    Strings are read like a form field would be: the leading numeric part
    counts (``"12abc"`` is 12) and anything unreadable, empty, infinite or
    NaN becomes 0. Never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return ZERO
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else ZERO

    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return ZERO
    number = float(match.group())
    if not math.isfinite(number):
        return ZERO
    return Decimal(repr(number))


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    context = Context(prec=max(28, value.adjusted() + 3))
    return value.quantize(CENT, rounding=ROUND_HALF_UP, context=context)


def format_currency(amount: object, currency: Optional[str] = "AED") -> str:
    """Format an amount for display, e.g. ``$1,250.00`` or ``AED 1,250.00``."""
    code = (currency or "").upper()
    value = round_money(coerce_number(amount))
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}"
    if code not in CURRENCIES:
        return f"{code} {sign}{digits}".strip()
    symbol = CURRENCIES[code][1]
    if symbol in PREFIX_SYMBOLS:
        return f"{sign}{symbol}{digits}"
    return f"{code} {sign}{digits}"
