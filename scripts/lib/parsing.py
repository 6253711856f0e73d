"""
Numeric parsing helpers for raw provider payloads.

Upstream providers send amounts as decimal strings, plain numbers, or
nothing at all. Everything here is total: malformed, missing and
non-finite values parse to zero instead of raising.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_float(value: Any) -> float:
    """
    Parse a USD amount or other decimal value to float.

    Args:
        value: String, int, float or None from a raw payload

    Returns:
        Parsed float, or 0.0 if the value is missing, malformed or non-finite

    Examples:
        parse_float("150.00") -> 150.0
        parse_float(None) -> 0.0
        parse_float("n/a") -> 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0

    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0

    if not math.isfinite(result):
        return 0.0

    return result


def parse_int(value: Any) -> int:
    """
    Parse a count to int.

    Decimal strings are truncated toward zero ("12.9" -> 12).

    Args:
        value: String, int, float or None from a raw payload

    Returns:
        Parsed int, or 0 if the value is missing or malformed
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value)
        except ValueError:
            pass

    return int(parse_float(value))


def token_quantity(raw_balance: Any, decimals: Any) -> float:
    """
    Scale a raw integer balance by its token decimals.

    Args:
        raw_balance: Balance in the token's smallest unit (integer string)
        decimals: Number of decimal places

    Returns:
        Human-readable quantity, or 0.0 if the balance is malformed or
        does not fit in a float

    Examples:
        token_quantity("1500000", 6) -> 1.5
        token_quantity("1000000000000000000", 18) -> 1.0
    """
    if raw_balance is None or isinstance(raw_balance, bool):
        return 0.0

    try:
        balance = Decimal(str(raw_balance).strip())
    except InvalidOperation:
        return 0.0

    if not balance.is_finite():
        return 0.0

    places = max(parse_int(decimals), 0)

    # Use Decimal for precise scaling before the single float conversion
    try:
        result = float(balance / (Decimal(10) ** places)) if places else float(balance)
    except ArithmeticError:
        return 0.0

    if not math.isfinite(result):
        return 0.0

    return result
