"""Locale-independent number formatting for rendered sections."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

_NUMERIC_TEXT = re.compile(r"^\s*(-)?\s*\$?\s*(-)?\s*([0-9][0-9,]*(?:\.[0-9]+)?|\.[0-9]+)\s*%?\s*$")

TWO_PLACES = Decimal("0.01")


def coerce_number(value: Any) -> Optional[Decimal]:
    """Interpret ``value`` as a number.

    Accepts ints, floats, Decimals and strings such as ``"$1,200"``,
    ``"15%"`` or ``"2500.50"``. Booleans and anything else return None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return Decimal(repr(value))
    if isinstance(value, str):
        match = _NUMERIC_TEXT.match(value)
        if not match:
            return None
        sign = "-" if (match.group(1) or match.group(2)) else ""
        try:
            return Decimal(sign + match.group(3).replace(",", ""))
        except InvalidOperation:
            return None
    return None


def format_number(value: Any) -> str:
    """Thousands separators; two decimals only when the value is fractional."""
    number = coerce_number(value)
    if number is None:
        return str(value)
    if number == number.to_integral_value():
        return f"{int(number):,}"
    return f"{number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP):,.2f}"


def format_currency(value: Any) -> str:
    """``$12,345`` / ``$12,345.50`` / ``-$300``; non-numeric text is returned as is."""
    number = coerce_number(value)
    if number is None:
        return str(value)
    formatted = format_number(abs(number))
    return f"-${formatted}" if number < 0 else f"${formatted}"


def format_percent(value: Any, ratio: bool = False) -> str:
    """Percentage with up to two decimals and no trailing zeros.

    Args:
        value: The number to format
        ratio: Treat the value as a fraction (0.125 -> 12.5%)
    """
    number = coerce_number(value)
    if number is None:
        return str(value)
    if ratio:
        number = number * 100
    text = f"{number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return f"{text}%"
