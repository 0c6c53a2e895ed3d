# buylock/utils/currency.py
"""
Currency catalogue and pure price helpers.

All prices are stored in KES (the base currency) and converted on the fly
using a rate table: currency code -> multiplier relative to KES.
"""

import math
import re
from dataclasses import dataclass

BASE_CURRENCY = "KES"


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str
    flag: str


SUPPORTED_CURRENCIES: list[Currency] = [
    Currency(code="KES", name="Kenyan Shilling", symbol="KES", flag="🇰🇪"),
    Currency(code="USD", name="US Dollar", symbol="$", flag="🇺🇸"),
    Currency(code="EUR", name="Euro", symbol="€", flag="🇪🇺"),
    Currency(code="GBP", name="British Pound", symbol="£", flag="🇬🇧"),
    Currency(code="ZAR", name="South African Rand", symbol="R", flag="🇿🇦"),
]

DEFAULT_CURRENCY = SUPPORTED_CURRENCIES[0]

CURRENCY_SYMBOLS: dict[str, str] = {c.code: c.symbol for c in SUPPORTED_CURRENCIES}

# Approximate rates used whenever live rates are unavailable
FALLBACK_RATES: dict[str, float] = {
    "KES": 1,
    "USD": 0.0062,
    "EUR": 0.0057,
    "GBP": 0.0049,
    "ZAR": 0.11,
}

# Leading decimal number, same prefix rule as a browser's parseFloat
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# Labels left over from older catalogue data, all meaning KES
_LEGACY_LABELS = [
    re.compile(r"KSh\s*"),
    re.compile(r"Ksh\s*"),
    re.compile(r"NGN\s*"),
    re.compile(r"₦\s*"),
]


def get_currency(code: str) -> Currency | None:
    for currency in SUPPORTED_CURRENCIES:
        if currency.code == code:
            return currency
    return None


def parse_amount(value: str | float | int | None) -> float | None:
    """
    Parse a price coming from the catalogue or a request.

    Strings are read like parseFloat: the leading decimal number wins,
    trailing text is ignored ("1500.50 KES" -> 1500.5).

    Returns None when nothing numeric can be read; callers decide
    whether to substitute 0 or reject the input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER_PREFIX.match(value)
        if not match:
            return None
        number = float(match.group(1))
    if math.isnan(number):
        return None
    return number


def convert_amount(
    amount: str | float | int,
    rates: dict[str, float],
    target: str,
    from_currency: str = BASE_CURRENCY,
) -> float:
    """
    Convert `amount` (expressed in `from_currency`) into `target`.

    - same currency: unchanged
    - from base: multiply by rates[target]
    - otherwise: divide by rates[from] to get back to base, then multiply
      by rates[target]

    Missing (or zero) rates count as 1. Unparseable amounts come back as NaN;
    `format_amount` is responsible for never rendering it.
    """
    number = parse_amount(amount)
    if number is None:
        return math.nan

    if from_currency == target:
        return number

    to_rate = rates.get(target) or 1
    if from_currency == BASE_CURRENCY:
        return number * to_rate

    from_rate = rates.get(from_currency) or 1
    return number / from_rate * to_rate


def fraction_digits(currency_code: str) -> int:
    return 0 if currency_code == BASE_CURRENCY else 2


def _group(number: float, min_digits: int, max_digits: int) -> str:
    text = f"{number:,.{max_digits}f}"
    if max_digits > min_digits and "." in text:
        whole, frac = text.split(".")
        frac = frac.rstrip("0").ljust(min_digits, "0")
        text = f"{whole}.{frac}" if frac else whole
    return text


def format_amount(
    amount: str | float | int | None,
    currency_code: str,
    show_symbol: bool = True,
    min_fraction_digits: int | None = None,
    max_fraction_digits: int | None = None,
) -> str:
    """
    Render an already-converted amount, e.g. "KES 1,500" or "$ 9.30".

    Base currency shows no decimals, everything else shows two, unless
    min/max_fraction_digits say otherwise. Trailing zeros beyond the
    minimum are dropped. NaN / infinite / non-numeric input is rendered as 0.
    """
    number = parse_amount(amount)
    if number is None or not math.isfinite(number):
        number = 0.0

    digits = fraction_digits(currency_code)
    min_digits = digits if min_fraction_digits is None else min_fraction_digits
    max_digits = max(
        min_digits,
        digits if max_fraction_digits is None else max_fraction_digits,
    )

    formatted = _group(number, min_digits, max_digits)
    if not show_symbol:
        return formatted
    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code)
    return f"{symbol} {formatted}"


def clean_currency_text(text: str) -> str:
    """Rewrite legacy currency labels (KSh, Ksh, NGN, ₦) as KES."""
    for pattern in _LEGACY_LABELS:
        text = pattern.sub("KES ", text)
    return text
