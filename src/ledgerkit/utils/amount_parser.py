"""Amount parsing utilities."""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "€123.45"
    - "-123.45"
    - "1,234.56"
    - "1.234,56" (comma as decimal separator)
    - "12,5"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    cleaned = re.sub(r"[^0-9.,\-]", "", amount_str)

    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")
    if last_dot > -1 and last_comma > -1:
        if last_dot > last_comma:
            cleaned = cleaned.replace(",", "")
        else:
            cleaned = cleaned.replace(".", "").replace(",", ".")
    elif last_comma > -1 and len(cleaned) - last_comma - 1 < 3:
        # A trailing comma group of 1-2 digits is a decimal separator
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")
    return -amount if is_negative else amount


def coerce_amount(value: Any) -> Decimal:
    """Convert an amount read from the backing store into a Decimal.

    Numbers and numeric strings are accepted.

    Raises:
        ValueError: If the value is missing, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Not a finite amount: {value!r}")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Not a finite amount: {value!r}")
        # str() keeps the shortest repr, avoiding binary float noise
        return Decimal(str(value))
    if isinstance(value, str):
        return parse_amount(value)
    raise ValueError(f"Not an amount: {value!r}")
