"""Frequencies tables: per-variable frequency tables and the combined Statistics table."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from statflow.config import StatisticsOptions
from statflow.formatting import (
    format_count,
    format_number,
    format_percent,
    format_percentile_label,
    spss_seconds_to_date_string,
)
from statflow.tables.common import FormattedTable, ROW_HEADER_KEY, column
from statflow.variables import (
    MOMENT_STATS,
    Measure,
    Variable,
    allows_stat,
    effective_measure,
    is_date_variable,
    value_label,
    variable_display_name,
)

logger = logging.getLogger(__name__)

STATS_DECIMAL_PLACES = 2

MULTIPLE_MODES_NOTE = "Multiple modes exist; the smallest value is shown."
ORDINAL_CAUTION_NOTE = (
    "Mean, standard deviation and related statistics assume interval data; "
    "interpret them with caution for ordinal variables."
)

# Fixed row order of the Statistics table (N and Percentiles are grouped rows)
STAT_ROWS: Tuple[Tuple[str, str], ...] = (
    ("Mean", "Mean"),
    ("SEMean", "Std. Error of Mean"),
    ("Median", "Median"),
    ("Mode", "Mode"),
    ("StdDev", "Std. Deviation"),
    ("Variance", "Variance"),
    ("Skewness", "Skewness"),
    ("SESkewness", "Std. Error of Skewness"),
    ("Kurtosis", "Kurtosis"),
    ("SEKurtosis", "Std. Error of Kurtosis"),
    ("Range", "Range"),
    ("Minimum", "Minimum"),
    ("Maximum", "Maximum"),
    ("Sum", "Sum"),
)

# Statistics that stay visible (as dd-mm-yyyy) for date variables
DATE_DISPLAY_STATS = frozenset({"Mode", "Median", "Percentiles"})

FREQUENCY_COLUMNS = (
    ("Frequency", "frequency"),
    ("Percent", "percent"),
    ("Valid Percent", "validPercent"),
    ("Cumulative Percent", "cumulativePercent"),
)


def _header_columns() -> List[Dict[str, Any]]:
    return [column("", ROW_HEADER_KEY), column("", ROW_HEADER_KEY)]


def _ratio_percent(part: float, whole: float) -> str:
    if not whole:
        return format_percent(0)
    return format_percent(part / whole * 100)


# ---------------------------------------------------------------------------
# Frequency table
# ---------------------------------------------------------------------------


def format_frequency_table(table: Mapping[str, Any], variable: Optional[Variable] = None) -> FormattedTable:
    """Build the frequency table of one variable.

    Args:
        table: Worker frequency table with ``rows`` and ``summary``
        variable: Variable the table belongs to (used for the title and value labels)

    Returns:
        Formatted table with a Valid group, an optional Missing group and a grand Total row
    """
    summary = table.get("summary") or {}
    valid = summary.get("valid") or 0
    missing = summary.get("missing") or 0
    total = summary.get("total") or 0
    category_rows = table.get("rows") or []

    children = []
    valid_sum = 0
    for entry in category_rows:
        frequency = entry.get("frequency") or 0
        valid_sum += frequency
        children.append(
            {
                ROW_HEADER_KEY: [None, value_label(variable, entry.get("label"))],
                "frequency": format_count(frequency),
                "percent": format_percent(entry.get("percent")),
                "validPercent": format_percent(entry.get("validPercent")),
                "cumulativePercent": format_percent(entry.get("cumulativePercent")),
            }
        )

    valid_total = valid_sum if category_rows else valid
    children.append(
        {
            ROW_HEADER_KEY: [None, "Total"],
            "frequency": format_count(valid_total),
            "percent": _ratio_percent(valid_total, total),
            "validPercent": format_percent(100) if valid_total > 0 else format_percent(0),
            "cumulativePercent": "",
        }
    )

    rows = [{ROW_HEADER_KEY: ["Valid"], "children": children}]
    if missing > 0:
        rows.append(
            {
                ROW_HEADER_KEY: ["Missing"],
                "children": [
                    {
                        ROW_HEADER_KEY: [None, "System"],
                        "frequency": format_count(missing),
                        "percent": _ratio_percent(missing, total),
                        "validPercent": "",
                        "cumulativePercent": "",
                    }
                ],
            }
        )
    rows.append(
        {
            ROW_HEADER_KEY: ["Total"],
            "frequency": format_count(total),
            "percent": format_percent(100) if total > 0 else format_percent(0),
            "validPercent": "",
            "cumulativePercent": "",
        }
    )

    title = table.get("title") or (variable_display_name(variable) if variable else "Frequencies")
    return {
        "title": title,
        "columnHeaders": _header_columns() + [column(header, key) for header, key in FREQUENCY_COLUMNS],
        "rows": rows,
    }


# ---------------------------------------------------------------------------
# Statistics table
# ---------------------------------------------------------------------------


def _percentile_map(stats: Mapping[str, Any]) -> Dict[float, Any]:
    raw = stats.get("Percentiles") or {}
    levels = {}
    for level, value in raw.items():
        try:
            levels[float(level)] = value
        except (TypeError, ValueError):
            logger.debug("Skipping percentile level %r", level)
    return levels


def _smallest_mode(modes: Any) -> Tuple[Any, bool]:
    if modes is None:
        return None, False
    if not isinstance(modes, (list, tuple)):
        return modes, False
    values = [mode for mode in modes if mode is not None]
    if not values:
        return None, False
    try:
        smallest = min(values, key=float)
    except (TypeError, ValueError):
        smallest = min(values, key=str)
    return smallest, len(values) > 1


def _format_value(variable: Variable, value: Any) -> str:
    if value is None:
        return ""
    # modes of date variables arrive already formatted
    if isinstance(value, str):
        return value
    if is_date_variable(variable):
        return spss_seconds_to_date_string(value)
    formatted = format_number(value, STATS_DECIMAL_PLACES)
    return "" if formatted is None else formatted


def _cell(variable: Variable, stat_key: str, value: Any) -> str:
    if not allows_stat(variable, stat_key):
        return ""
    if is_date_variable(variable) and stat_key not in DATE_DISPLAY_STATS:
        return ""
    return _format_value(variable, value)


def _has_moment_stats(stats: Mapping[str, Any]) -> bool:
    return any(stats.get(key) is not None for key in MOMENT_STATS)


def format_statistics_table(
    results: Sequence[Tuple[Variable, Mapping[str, Any]]],
    statistics_options: Optional[StatisticsOptions] = None,
) -> Optional[FormattedTable]:
    """Build the Statistics table with one column per variable.

    Args:
        results: ``(variable, stats)`` pairs in column order
        statistics_options: When given, only the requested statistics get a row

    Returns:
        Formatted table, or None when there is nothing to show
    """
    if not results:
        return None

    requested = set(statistics_options.requested_stats()) if statistics_options else None

    def wanted(stat_key: str) -> bool:
        if requested is not None and stat_key not in requested:
            return False
        return any(stat_key in stats for _, stats in results)

    multiple_modes = False
    ordinal_caution = []
    for variable, stats in results:
        if "Mode" in stats and _smallest_mode(stats.get("Mode"))[1]:
            multiple_modes = True
        if effective_measure(variable) == Measure.ORDINAL.value and _has_moment_stats(stats):
            ordinal_caution.append(variable.name)

    notes = []
    mode_marker = caution_marker = ""
    if multiple_modes:
        notes.append(MULTIPLE_MODES_NOTE)
        mode_marker = f"<sup>{chr(ord('a') + len(notes) - 1)}</sup>"
    if ordinal_caution:
        notes.append(ORDINAL_CAUTION_NOTE)
        caution_marker = f"<sup>{chr(ord('a') + len(notes) - 1)}</sup>"

    column_headers = _header_columns()
    for variable, _ in results:
        header = variable_display_name(variable)
        if variable.name in ordinal_caution:
            header += caution_marker
        column_headers.append(column(header, variable.name))

    rows = [
        {
            ROW_HEADER_KEY: ["N"],
            "children": [
                {
                    ROW_HEADER_KEY: [None, "Valid"],
                    **{variable.name: format_count(stats.get("N", 0)) for variable, stats in results},
                },
                {
                    ROW_HEADER_KEY: [None, "Missing"],
                    **{variable.name: format_count(stats.get("Missing", 0)) for variable, stats in results},
                },
            ],
        }
    ]

    for stat_key, label in STAT_ROWS:
        if not wanted(stat_key):
            continue
        row = {ROW_HEADER_KEY: [label]}
        for variable, stats in results:
            if stat_key == "Mode":
                value, several = _smallest_mode(stats.get("Mode"))
                cell = _cell(variable, stat_key, value)
                if cell and several:
                    cell += mode_marker
                row[variable.name] = cell
            else:
                row[variable.name] = _cell(variable, stat_key, stats.get(stat_key))
        rows.append(row)

    if wanted("Percentiles"):
        percentiles = {variable.name: _percentile_map(stats) for variable, stats in results}
        levels = sorted({level for per_var in percentiles.values() for level in per_var})
        if levels:
            children = []
            for level in levels:
                child = {ROW_HEADER_KEY: [None, format_percentile_label(level)]}
                for variable, _ in results:
                    child[variable.name] = _cell(
                        variable, "Percentiles", percentiles[variable.name].get(level)
                    )
                children.append(child)
            rows.append({ROW_HEADER_KEY: ["Percentiles"], "children": children})

    table = {"title": "Statistics", "columnHeaders": column_headers, "rows": rows}
    if notes:
        table["footer"] = "\n".join(
            f"{chr(ord('a') + index)}. {note}" for index, note in enumerate(notes)
        )
    return table
