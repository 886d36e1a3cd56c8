"""Display formatting for numbers, p-values, degrees of freedom and dates."""

from statflow.formatting.numbers import (
    format_number,
    format_p_value,
    format_df,
    format_percent,
    format_count,
    format_percentile_label,
    format_literal,
)
from statflow.formatting.dates import (
    SPSS_EPOCH,
    spss_seconds_to_date_string,
    date_string_to_spss_seconds,
    is_date_string,
)

__all__ = [
    "format_number",
    "format_p_value",
    "format_df",
    "format_percent",
    "format_count",
    "format_percentile_label",
    "format_literal",
    "SPSS_EPOCH",
    "spss_seconds_to_date_string",
    "date_string_to_spss_seconds",
    "is_date_string",
]
