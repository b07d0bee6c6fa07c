"""
Money Utilities - Safe Decimal operations for prices and totals.

Prices never pass through binary float internally; floats appear only at
the JSON boundary (see to_float).
"""
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

Number = Union[str, int, float, Decimal]


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Returns Decimal("0") for None or unparseable input. Use parse_price when
    invalid input must be reported instead of zeroed.
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Go through str() so 0.1 becomes Decimal("0.1"), not its binary expansion
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_price(value: Union[Number, None]) -> Optional[Decimal]:
    """
    Strictly parse a unit price.

    Returns None when the value is missing, not numeric, not finite or
    negative.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        price = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def to_float(value: Number) -> float:
    """
    Convert Decimal to float for JSON serialization.

    Use only at API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def line_total(price: Number, quantity: int) -> Decimal:
    """Total for one line: unit price x quantity, unrounded."""
    return multiply(price, quantity)


def sum_money(values: Iterable[Number]) -> Decimal:
    """Exact sum of monetary values; empty input sums to Decimal("0")."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return total
