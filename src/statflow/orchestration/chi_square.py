"""Chi-Square runner: one computation unit per tested variable."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from statflow.compute.workers import chi_square_worker
from statflow.config import ChiSquareRequest
from statflow.formatting import format_literal
from statflow.orchestration.base import RunContext, RunOutput
from statflow.orchestration.nonparametric import PerVariableRunner
from statflow.orchestration.units import WorkerHandler
from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry, metadata_of
from statflow.tables import (
    format_descriptive_statistics_table,
    format_frequencies_table,
    format_test_statistics_table,
)

logger = logging.getLogger(__name__)


def _format_bound(value: Optional[float]) -> str:
    return "LO" if value is None else format_literal(value)


def _statistics_log(request: Any) -> Optional[str]:
    display = request.options.display_statistics
    parts = [name for name, on in (("DESCRIPTIVES", display.descriptive), ("QUARTILES", display.quartiles)) if on]
    return f"{{STATISTICS {' '.join(parts)}}}" if parts else None


class ChiSquareRunner(PerVariableRunner):
    """One-sample Chi-Square goodness-of-fit test for each selected variable."""

    worker_label = "Chi-Square"
    analysis_type = "chiSquare"
    test_title = "Chi-Square Test"

    @property
    def handler(self) -> WorkerHandler:
        return chi_square_worker

    def insufficient_reason(self, result: Mapping[str, Any]) -> Optional[str]:
        metadata = metadata_of(result)
        if not metadata.has_insufficient_data:
            return None
        if "empty" in metadata.insufficient_type:
            return "no valid values"
        return "fewer than two categories"

    @staticmethod
    def log_text(request: ChiSquareRequest) -> str:
        names = " ".join(variable.name for variable in request.variables)
        expected_range = request.options.expected_range
        expected_value = request.options.expected_value

        parts = ["NPAR TESTS", f"{{CHISQUARE={names}}}"]
        if expected_range.use_specified_range:
            upper = "HI" if expected_range.upper_value is None else format_literal(expected_range.upper_value)
            parts[-1] = f"{{CHISQUARE={names} ({_format_bound(expected_range.lower_value)},{upper})}}"
        if expected_value.all_categories_equal:
            parts.append("{EXPECTED=EQUAL}")
        else:
            parts.append(f"{{EXPECTED={' '.join(format_literal(value) for value in expected_value.values)}}}")
        statistics = _statistics_log(request)
        if statistics:
            parts.append(statistics)
        return " ".join(parts)

    def build_output(self, ctx: RunContext) -> Optional[RunOutput]:
        request: ChiSquareRequest = ctx.request
        results = self.ordered_results(ctx)
        if not results:
            return None

        options = request.options
        entries: List[StatisticEntry] = []

        if options.display_statistics.any:
            table = format_descriptive_statistics_table(results, options.display_statistics)
            entries.append(StatisticEntry.for_tables("Descriptive Statistics", [table], "Descriptive statistics"))

        expected_range = options.expected_range
        frequencies = format_frequencies_table(
            results,
            specified_range=expected_range.use_specified_range,
            expected_range=(expected_range.lower_value, expected_range.upper_value),
        )
        frequency_tables = frequencies if isinstance(frequencies, list) else [frequencies]
        if frequency_tables:
            entries.append(StatisticEntry.for_tables("Frequencies", frequency_tables, "Observed and expected frequencies"))

        test_statistics = format_test_statistics_table(results)
        entries.append(StatisticEntry.for_tables("Test Statistics", [test_statistics], "Chi-Square test statistics"))

        note = self.insufficient_note(ctx)
        if note:
            logger.info(note)
        return LogEntry(log=self.log_text(request)), AnalyticEntry(title=self.test_title, note=note), entries
