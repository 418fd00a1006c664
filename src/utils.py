"""Shared utilities used across the dashboard metrics engine."""

from decimal import Decimal
from typing import Union

Amount = Union[int, float, Decimal]


def format_amount(value: Amount) -> str:
    """Render a money amount without a trailing ``.0`` for whole values.

    Examples:
        >>> format_amount(500.0)
        '500'
        >>> format_amount(12.5)
        '12.5'
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value)
