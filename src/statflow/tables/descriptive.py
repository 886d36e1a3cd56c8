"""Descriptive Statistics table shared by the Chi-Square and Runs procedures."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from statflow.config import DisplayStatisticsOptions
from statflow.formatting import format_count, format_number
from statflow.results.models import as_variable
from statflow.tables.common import FormattedTable, ROW_HEADER_KEY, column, no_data_table
from statflow.variables import variable_display_name

TITLE = "Descriptive Statistics"


def format_descriptive_statistics_table(
    results: Sequence[Mapping[str, Any]],
    display_statistics: Optional[DisplayStatisticsOptions] = None,
) -> FormattedTable:
    """One row per variable: N, then Mean/Std. Deviation/Minimum/Maximum and quartiles on request.

    Mean gets two more decimals than the variable itself and the standard
    deviation three more; extremes and quartiles use the variable's decimals.
    """
    if not results:
        return no_data_table(TITLE)

    display = display_statistics or DisplayStatisticsOptions()
    column_headers = [column("", ROW_HEADER_KEY), column("N", "N")]
    if display.descriptive:
        column_headers += [
            column("Mean", "Mean"),
            column("Std. Deviation", "StdDev"),
            column("Minimum", "Min"),
            column("Maximum", "Max"),
        ]
    if display.quartiles:
        column_headers.append(
            column(
                "Percentiles",
                "percentiles",
                children=[
                    column("25th", "Percentile25"),
                    column("50th (Median)", "Percentile50"),
                    column("75th", "Percentile75"),
                ],
            )
        )

    rows = []
    for result in results:
        variable = as_variable(result.get("variable1"))
        stats = result.get("descriptiveStatistics") or {}
        decimals = variable.decimals if variable is not None else 0

        row = {
            ROW_HEADER_KEY: [variable_display_name(variable)],
            "N": format_count(stats.get("N1")),
        }
        if display.descriptive:
            row["Mean"] = format_number(stats.get("Mean1"), decimals + 2)
            row["StdDev"] = format_number(stats.get("StdDev1"), decimals + 3)
            row["Min"] = format_number(stats.get("Min1"), decimals)
            row["Max"] = format_number(stats.get("Max1"), decimals)
        if display.quartiles:
            for level in (25, 50, 75):
                row[f"Percentile{level}"] = format_number(stats.get(f"Percentile{level}_1"), decimals)
        rows.append(row)

    return {"title": TITLE, "columnHeaders": column_headers, "rows": rows}
