"""
Numeric coercion helpers shared by the models and the analyzers.

Prospectus figures arrive from the extraction step in every shape imaginable:
Swedish formatted strings ("1 234,5"), plain numbers, nulls and the odd
"okänt". Everything that feeds a calculation goes through ``coerce_number``
so a NaN or Infinity can never reach a financial formula.
"""

import math
import re
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def coerce_number(value: Any) -> float | None:
    """
    Convert a loosely typed value to a finite float.

    - None and empty strings become None.
    - Strings have all whitespace removed and a decimal comma replaced
      with a point before parsing ("1 234,56" -> 1234.56).
    - Ints and floats pass through when finite.
    - Everything else (bool, list, dict, ...) becomes None.

    Never raises.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        cleaned = _WHITESPACE.sub("", value).replace(",", ".", 1)
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None

    if isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            return None
        return parsed if math.isfinite(parsed) else None

    return None


def parse_currency(value: Any) -> float | None:
    """
    Parse a price figure, tolerating currency text around the number.

    Plain numbers go through ``coerce_number``; strings such as
    "2 100 000 kr" or "SEK 2.100.000" that it rejects fall back to the
    price-parser library.
    """
    parsed = coerce_number(value)
    if parsed is not None or not isinstance(value, str):
        return parsed

    from price_parser import Price

    amount = Price.fromstring(value).amount_float
    if amount is None or not math.isfinite(amount):
        return None
    return amount


def safe_ratio(numerator: float | None, denominator: float | None) -> float | None:
    """Divide, returning None when either side is absent or the denominator is zero."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator
