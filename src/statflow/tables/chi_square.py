"""Chi-Square frequencies and test statistics tables."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from statflow.formatting import format_df, format_number, format_p_value
from statflow.results.models import as_variable, metadata_of
from statflow.tables.common import (
    FormattedTable,
    ROW_HEADER_KEY,
    column,
    format_error_table,
    no_data_table,
    row_key_for,
)
from statflow.variables import Variable, value_label, variable_display_name

ChiSquareResult = Mapping[str, Any]


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _same_category(left: Any, right: Any) -> bool:
    left_num, right_num = _as_float(left), _as_float(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    return str(left) == str(right)


def _is_sufficient(result: ChiSquareResult) -> bool:
    return not metadata_of(result).has_insufficient_data


def _frequencies_of(result: ChiSquareResult) -> Optional[Mapping[str, Any]]:
    frequencies = result.get("frequencies")
    if isinstance(frequencies, Mapping) and "categoryList" in frequencies:
        return frequencies
    return None


def _header_for(variable: Optional[Variable], index: int) -> str:
    return variable_display_name(variable, fallback=f"Variable {index + 1}")


def _expected_at(frequencies: Mapping[str, Any], index: int) -> float:
    expected = frequencies.get("expectedN")
    if isinstance(expected, (list, tuple)):
        return expected[index] if index < len(expected) else 0
    return _uniform_expected(frequencies)


def _uniform_expected(frequencies: Mapping[str, Any]) -> float:
    observed = frequencies.get("observedN") or []
    categories = frequencies.get("categoryList") or []
    if not categories:
        return 0
    return sum(observed) / len(categories)


def format_frequencies_table(
    results: Sequence[ChiSquareResult],
    specified_range: bool = False,
    expected_range: Optional[Tuple[Optional[float], Optional[float]]] = None,
) -> Union[FormattedTable, List[FormattedTable]]:
    """Observed/expected frequencies for each tested variable.

    Args:
        results: Per-variable Chi-Square results
        specified_range: Whether categories came from a user-specified range
        expected_range: ``(lower, upper)`` of the specified range; when both
            bounds are known every integer in the range gets a row

    Returns:
        One table per variable when categories come from the data, a single
        merged table (one column group per variable) for a specified range
    """
    if not results:
        return no_data_table("Frequencies")
    if not specified_range:
        return _format_from_data(results)
    return _format_specified_range(results, expected_range)


def _format_from_data(results: Sequence[ChiSquareResult]) -> List[FormattedTable]:
    tables = []
    for result in results:
        variable = as_variable(result.get("variable1"))
        frequencies = _frequencies_of(result)
        if variable is None or frequencies is None or not frequencies.get("categoryList"):
            continue

        categories = frequencies["categoryList"]
        observed = frequencies.get("observedN") or []
        residuals = frequencies.get("residual") or []

        rows = []
        for index, category in enumerate(categories):
            rows.append(
                {
                    ROW_HEADER_KEY: [value_label(variable, category)],
                    "observedN": observed[index] if index < len(observed) else 0,
                    "expectedN": format_number(_expected_at(frequencies, index), 1),
                    "residual": format_number(residuals[index] if index < len(residuals) else 0, 1),
                }
            )
        rows.append(
            {
                ROW_HEADER_KEY: ["Total"],
                "observedN": frequencies.get("N", sum(observed)),
                "expectedN": "",
                "residual": "",
            }
        )
        tables.append(
            {
                "title": variable_display_name(variable),
                "columnHeaders": [
                    column("", ROW_HEADER_KEY),
                    column("Observed N", "observedN"),
                    column("Expected N", "expectedN"),
                    column("Residual", "residual"),
                ],
                "rows": rows,
            }
        )
    return tables


def _range_axis(
    results: Sequence[ChiSquareResult],
    expected_range: Optional[Tuple[Optional[float], Optional[float]]],
) -> List[Any]:
    lower, upper = expected_range if expected_range else (None, None)
    if lower is not None and upper is not None:
        axis = {float(value) for value in range(math.ceil(lower), math.floor(upper) + 1)}
        for result in results:
            frequencies = _frequencies_of(result)
            if frequencies is None or not _is_sufficient(result):
                continue
            for category in frequencies["categoryList"]:
                number = _as_float(category)
                if number is not None and lower <= number <= upper:
                    axis.add(number)
        return sorted(axis)

    for result in results:
        frequencies = _frequencies_of(result)
        if frequencies is not None and _is_sufficient(result):
            return list(frequencies["categoryList"])
    return []


def _category_text(value: Any, decimals: int) -> str:
    number = _as_float(value)
    if number is None:
        return str(value)
    return format_number(number, decimals)


def _format_specified_range(
    results: Sequence[ChiSquareResult],
    expected_range: Optional[Tuple[Optional[float], Optional[float]]],
) -> FormattedTable:
    column_headers = [column("", ROW_HEADER_KEY)]
    for index, result in enumerate(results):
        variable = as_variable(result.get("variable1"))
        if variable is None or not _is_sufficient(result):
            continue
        column_headers.append(
            column(
                _header_for(variable, index),
                row_key_for(index),
                children=[
                    column("Category", f"category{index}"),
                    column("Observed N", f"observedN{index}"),
                    column("Expected N", f"expectedN{index}"),
                    column("Residual", f"residual{index}"),
                ],
            )
        )

    rows = []
    for position, value in enumerate(_range_axis(results, expected_range)):
        row: Dict[str, Any] = {ROW_HEADER_KEY: [position + 1]}
        for index, result in enumerate(results):
            variable = as_variable(result.get("variable1"))
            frequencies = _frequencies_of(result)
            if variable is None or frequencies is None or not _is_sufficient(result):
                for key in ("category", "observedN", "expectedN", "residual"):
                    row[f"{key}{index}"] = ""
                continue

            categories = frequencies["categoryList"]
            match = next(
                (i for i, category in enumerate(categories) if _same_category(category, value)),
                None,
            )
            observed_list = frequencies.get("observedN") or []
            observed = observed_list[match] if match is not None and match < len(observed_list) else 0
            observed = observed or 0

            row[f"category{index}"] = "" if observed == 0 else _category_text(value, variable.decimals)
            row[f"observedN{index}"] = observed
            if match is not None:
                residuals = frequencies.get("residual") or []
                residual = residuals[match] if match < len(residuals) else 0
                row[f"expectedN{index}"] = format_number(_expected_at(frequencies, match), 1)
                row[f"residual{index}"] = format_number(residual or 0, 1)
            else:
                expected = 0 if isinstance(frequencies.get("expectedN"), (list, tuple)) else _uniform_expected(frequencies)
                row[f"expectedN{index}"] = format_number(expected, 1)
                row[f"residual{index}"] = format_number(-expected, 1)
        rows.append(row)

    total_row: Dict[str, Any] = {ROW_HEADER_KEY: ["Total"]}
    for index, result in enumerate(results):
        frequencies = _frequencies_of(result)
        if frequencies is not None and _is_sufficient(result):
            total_row[f"observedN{index}"] = sum(frequencies.get("observedN") or [])
        else:
            total_row[f"observedN{index}"] = ""
    rows.append(total_row)

    return {"title": "Frequencies", "columnHeaders": column_headers, "rows": rows}


def format_test_statistics_table(results: Sequence[ChiSquareResult]) -> FormattedTable:
    """Chi-Square, df and asymptotic significance per variable."""
    if not results:
        return no_data_table("No Data")

    column_headers = [column("", ROW_HEADER_KEY)]
    chi_square_row: Dict[str, Any] = {ROW_HEADER_KEY: ["Chi-Square"]}
    df_row: Dict[str, Any] = {ROW_HEADER_KEY: ["df"]}
    p_value_row: Dict[str, Any] = {ROW_HEADER_KEY: ["Asymp. Sig."]}

    for index, result in enumerate(results):
        variable = as_variable(result.get("variable1"))
        if not _is_sufficient(result):
            continue
        key = row_key_for(index)
        if variable is not None:
            column_headers.append(column(_header_for(variable, index), key))
        stats = result.get("testStatistics") or {}
        chi_square_row[key] = format_number(stats.get("ChiSquare"), 3)
        df_row[key] = format_df(stats.get("DF"))
        p_value_row[key] = format_p_value(stats.get("PValue"))

    return {
        "title": "Test Statistics",
        "columnHeaders": column_headers,
        "rows": [chi_square_row, df_row, p_value_row],
    }


__all__ = [
    "format_frequencies_table",
    "format_test_statistics_table",
    "format_error_table",
]
