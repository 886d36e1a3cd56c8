"""Number formatting primitives shared by all table builders."""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float]

P_VALUE_FLOOR = 0.001


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return not math.isfinite(value)
    except TypeError:
        return True


def format_number(value: Optional[Number], precision: int) -> Optional[str]:
    """Format a number with exactly ``precision`` digits after the decimal point.

    Rounding is half away from zero on the exact binary value of ``value``,
    which is what fixed-point formatting in the result viewer does.

    Args:
        value: Number to format (None, NaN and infinities yield None)
        precision: Number of decimal digits (>= 0)

    Returns:
        Formatted string or None
    """
    if _is_missing(value):
        return None
    quantum = Decimal(1).scaleb(-int(precision))
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:.{int(precision)}f}"


def format_p_value(value: Optional[Number]) -> Optional[str]:
    """Format a p-value, collapsing anything below .001 to ``"<.001"``."""
    if _is_missing(value):
        return None
    if value < P_VALUE_FLOOR:
        return "<.001"
    return format_number(value, 3)


def format_df(value: Optional[Number]) -> Optional[Union[int, str]]:
    """Format degrees of freedom.

    Integral values are returned unchanged as ``int``; anything else is
    returned as a 3-decimal string.
    """
    if _is_missing(value):
        return None
    if float(value).is_integer():
        return int(value)
    return format_number(value, 3)


def format_percent(value: Optional[Number]) -> str:
    """Format a percentage with one decimal; missing values read as 0."""
    if _is_missing(value):
        value = 0
    return format_number(value, 1)


def format_count(value: Optional[Number]) -> Optional[Union[int, str]]:
    """Weighted counts keep decimals, plain counts stay integers."""
    if _is_missing(value):
        return None
    if float(value).is_integer():
        return int(value)
    return format_number(value, 2)


def format_percentile_label(level: Number) -> str:
    """Row label for a percentile level: ``25`` or ``33.3``."""
    level = float(level)
    if level.is_integer():
        return str(int(level))
    return format_number(level, 1).rstrip("0").rstrip(".")


def format_literal(value: Number) -> str:
    """Render a user-entered value the way it was typed, never in exponent form.

    >>> format_literal(1234567.0)
    '1234567'
    >>> format_literal(2.5)
    '2.5'
    """
    number = float(value)
    if not math.isfinite(number):
        return str(number)
    if number.is_integer():
        return str(int(number))
    text = repr(number)
    if "e" in text:
        text = f"{Decimal(text):f}"
    return text
