"""Runs Test tables, one per cut-point type."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from statflow.config import CUT_POINT_TYPES
from statflow.formatting import (
    format_count,
    format_literal,
    format_number,
    format_p_value,
    spss_seconds_to_date_string,
)
from statflow.results.models import as_variable
from statflow.tables.common import FormattedTable, ROW_HEADER_KEY, column, no_data_table, row_key_for
from statflow.variables import Variable, is_date_variable, variable_display_name

TITLE = "Runs Test"

CUT_POINT_TITLES = {"median": "Median", "mean": "Mean", "mode": "Mode", "custom": "Custom"}

ROW_LABELS = (
    ("TestValue", "Test Value"),
    ("CasesBelow", "Cases < Test Value"),
    ("CasesAbove", "Cases >= Test Value"),
    ("Total", "Total Cases"),
    ("Runs", "Number of Runs"),
    ("Z", "Z"),
    ("PValue", "Asymp. Sig. (2-tailed)"),
)


def _format_stat(variable: Optional[Variable], key: str, value: Any) -> Any:
    if value is None:
        return ""
    if key == "TestValue":
        if variable is not None and is_date_variable(variable):
            return spss_seconds_to_date_string(value)
        decimals = variable.decimals if variable is not None else 0
        return format_number(value, decimals + 2) or ""
    if key in ("CasesBelow", "CasesAbove", "Total", "Runs"):
        return format_count(value)
    if key == "Z":
        return format_number(value, 3) or ""
    if key == "PValue":
        return format_p_value(value) or ""
    return value


def _custom_suffix(custom_value: Optional[float], entries: List[Tuple[int, Mapping, Mapping]]) -> str:
    value = custom_value
    if value is None and entries:
        value = entries[0][2].get("TestValue")
    if value is None:
        return "Custom"
    return f"Custom ({format_literal(value)})"


def _build_table(title: str, entries: List[Tuple[int, Mapping, Mapping]]) -> FormattedTable:
    column_headers = [column("", ROW_HEADER_KEY)]
    for index, result, _ in entries:
        variable = as_variable(result.get("variable1"))
        column_headers.append(
            column(variable_display_name(variable, fallback=f"Variable {index + 1}"), row_key_for(index))
        )

    rows = []
    for key, label in ROW_LABELS:
        row: Dict[str, Any] = {ROW_HEADER_KEY: [label]}
        for index, result, stats in entries:
            variable = as_variable(result.get("variable1"))
            row[row_key_for(index)] = _format_stat(variable, key, stats.get(key))
        rows.append(row)
    return {"title": title, "columnHeaders": column_headers, "rows": rows}


def format_runs_test_table(
    results: Sequence[Mapping[str, Any]],
    custom_value: Optional[float] = None,
) -> List[FormattedTable]:
    """Build one table per cut-point type that has at least one defined test value.

    Args:
        results: Per-variable Runs results (``variable1``, ``runsTest``, ...)
        custom_value: Custom cut point, used in the Custom table's title

    Returns:
        Tables in median, mean, mode, custom order. Falls back to a single
        ungrouped table when no cut point has a test value, and to a
        ``No Data`` placeholder when there are no results at all.
    """
    if not results:
        return [no_data_table(TITLE)]

    tables = []
    for cut_type in CUT_POINT_TYPES:
        entries = []
        for index, result in enumerate(results):
            stats = (result.get("runsTest") or {}).get(cut_type)
            if stats and stats.get("TestValue") is not None:
                entries.append((index, result, stats))
        if not entries:
            continue
        suffix = _custom_suffix(custom_value, entries) if cut_type == "custom" else CUT_POINT_TITLES[cut_type]
        tables.append(_build_table(f"{TITLE} ({suffix})", entries))

    if tables:
        return tables

    entries = []
    for index, result in enumerate(results):
        runs_test = result.get("runsTest") or {}
        stats = next((runs_test[name] for name in CUT_POINT_TYPES if runs_test.get(name)), {})
        entries.append((index, result, stats))
    return [_build_table(TITLE, entries)]
