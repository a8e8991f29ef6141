"""Helpers for Decimal normalization."""

from decimal import Decimal, InvalidOperation


def coerce_decimal(value) -> Decimal:
    """Normalize numeric values to Decimal.

    Args:
        value: Raw numeric value from the API, the cache or a broadcast.

    Returns:
        Decimal: Normalized numeric value. Unparseable or non-finite input
        (NaN, Infinity) becomes zero.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def to_json_number(value: Decimal) -> str:
    """Render a Decimal for JSON payloads without losing precision."""
    return format(value, "f")


__all__ = ["coerce_decimal", "to_json_number"]
