"""Table builders turning raw results into ``FormattedTable`` dicts."""

from statflow.tables.common import FormattedTable, format_error_table, no_data_table
from statflow.tables.frequencies import (
    STATS_DECIMAL_PLACES,
    format_frequency_table,
    format_statistics_table,
)
from statflow.tables.chi_square import format_frequencies_table, format_test_statistics_table
from statflow.tables.descriptive import format_descriptive_statistics_table
from statflow.tables.runs import format_runs_test_table
from statflow.tables.charts import build_chart_payloads

__all__ = [
    "FormattedTable",
    "STATS_DECIMAL_PLACES",
    "format_error_table",
    "no_data_table",
    "format_frequency_table",
    "format_statistics_table",
    "format_frequencies_table",
    "format_test_statistics_table",
    "format_descriptive_statistics_table",
    "format_runs_test_table",
    "build_chart_payloads",
]
