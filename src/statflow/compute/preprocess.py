"""Value coercion and missing-value handling for computation units."""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence, Tuple

from statflow.formatting import date_string_to_spss_seconds, is_date_string
from statflow.variables import MissingDefinition, Variable, core_type


def is_numeric(value: Any) -> bool:
    """True for finite numbers and strings that parse as one."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str) and value.strip():
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def to_numeric(value: Any) -> Optional[float]:
    """Coerce a raw cell to a float.

    ``dd-mm-yyyy`` strings become seconds since the SPSS epoch; anything that
    is not numeric yields None.
    """
    if isinstance(value, str) and is_date_string(value):
        return date_string_to_spss_seconds(value)
    if is_numeric(value):
        return float(value)
    return None


def is_missing(value: Any, definition: Optional[MissingDefinition], numeric: bool) -> bool:
    """Whether a raw cell is system- or user-missing.

    Args:
        value: Raw cell
        definition: User-missing definition of the variable
        numeric: Whether the variable is numeric-like (ranges only apply then)
    """
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if numeric and isinstance(value, str) and not value.strip():
        return True
    if definition is None:
        return False

    for code in definition.discrete:
        if str(code) == str(value):
            return True
        if numeric:
            left, right = to_numeric(value), to_numeric(code)
            if left is not None and left == right:
                return True

    if numeric and definition.range is not None:
        number = to_numeric(value)
        if number is not None and definition.range.min <= number <= definition.range.max:
            return True
    return False


def valid_weight(weights: Optional[Sequence[Any]], index: int) -> Optional[float]:
    """Weight of case ``index``; None when the case must be ignored entirely."""
    if weights is None:
        return 1.0
    raw = weights[index] if index < len(weights) else None
    if raw is None:
        return 1.0
    weight = to_numeric(raw)
    if weight is None or weight <= 0:
        return None
    return weight


def numeric_cases(
    variable: Variable,
    data: Sequence[Any],
    weights: Optional[Sequence[Any]] = None,
) -> Tuple[List[float], List[float], float]:
    """Valid numeric values with their weights.

    Returns:
        Tuple of (values, weights, total weight of all cases with a valid weight)
    """
    values, value_weights = [], []
    total = 0.0
    for index, raw in enumerate(data):
        weight = valid_weight(weights, index)
        if weight is None:
            continue
        total += weight
        if is_missing(raw, variable.missing, numeric=True):
            continue
        number = to_numeric(raw)
        if number is None:
            continue
        values.append(number)
        value_weights.append(weight)
    return values, value_weights, total


def is_numeric_like(variable: Variable) -> bool:
    """Numeric and date variables are analysed numerically."""
    return core_type(variable) in ("numeric", "date")
