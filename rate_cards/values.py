"""
Numeric and Text Coercion

Rate card data and trip records arrive with loosely typed values: numbers as
int, float, Decimal or numeric strings; dates as date/datetime. These helpers
give one canonical Decimal and one canonical text form for each value.

Floats go through repr() so 8.1 becomes Decimal("8.1"), not the binary
expansion.
"""

from datetime import date
from decimal import Decimal, InvalidOperation


def to_decimal(value) -> Decimal | None:
    """
    Decimal for a numeric-looking value, or None if it isn't one.

    Booleans are not numeric. NaN and infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        number = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def require_decimal(value, field: str) -> Decimal:
    """to_decimal() for rate card amounts: a non-numeric value is an authoring defect."""
    number = to_decimal(value)
    if number is None:
        raise ValueError(f"{field} must be numeric, got {value!r}")
    return number


def as_text(value) -> str:
    """
    Canonical text form used by IN, NOT_IN, CONTAINS and textual EQUALS.

        True          -> "true"
        date(2025,1,2)-> "2025-01-02"
        15.0          -> "15"
        Decimal("2.50")-> "2.5"
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        if value == value.to_integral_value():
            return str(int(value))
        return format(value.normalize(), "f")
    return str(value)


__all__ = ["to_decimal", "require_decimal", "as_text"]
