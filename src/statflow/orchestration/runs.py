"""Runs Test runner: one computation unit per tested variable."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from statflow.compute.workers import runs_worker
from statflow.config import RunsRequest
from statflow.formatting import format_literal
from statflow.orchestration.base import RunContext, RunOutput
from statflow.orchestration.nonparametric import PerVariableRunner
from statflow.orchestration.units import WorkerHandler
from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry, metadata_of
from statflow.tables import format_descriptive_statistics_table, format_runs_test_table

logger = logging.getLogger(__name__)

CUTOFF_REASON = "all values are greater than or less than the cutoff"


class RunsRunner(PerVariableRunner):
    """Runs Test for randomness around the selected cut points."""

    worker_label = "Runs Test"
    analysis_type = "runs"
    test_title = "Runs Test"

    @property
    def handler(self) -> WorkerHandler:
        return runs_worker

    def insufficient_reason(self, result: Mapping[str, Any]) -> Optional[str]:
        metadata = metadata_of(result)
        if "empty" in metadata.insufficient_type:
            return "no valid values"
        if metadata.has_insufficient_data:
            return CUTOFF_REASON

        runs_test = result.get("runsTest") or {}
        for stats in runs_test.values():
            if isinstance(stats, Mapping) and (stats.get("CasesBelow") == 0 or stats.get("CasesAbove") == 0):
                return CUTOFF_REASON
        return None

    @staticmethod
    def log_text(request: RunsRequest) -> str:
        names = " ".join(variable.name for variable in request.variables)
        options = request.options

        parts = ["NPAR TESTS"]
        for cut in options.cut_point.selected():
            label = format_literal(options.custom_value) if cut == "custom" else cut.upper()
            parts.append(f"{{RUNS ({label})={names}}}")

        display = options.display_statistics
        statistics = [name for name, on in (("DESCRIPTIVES", display.descriptive), ("QUARTILES", display.quartiles)) if on]
        if statistics:
            parts.append(f"{{STATISTICS {' '.join(statistics)}}}")
        return " ".join(parts)

    def build_output(self, ctx: RunContext) -> Optional[RunOutput]:
        request: RunsRequest = ctx.request
        results = self.ordered_results(ctx)
        if not results:
            return None

        options = request.options
        entries: List[StatisticEntry] = []

        if options.display_statistics.any:
            table = format_descriptive_statistics_table(results, options.display_statistics)
            entries.append(StatisticEntry.for_tables("Descriptive Statistics", [table], "Descriptive statistics"))

        runs_tables = format_runs_test_table(results, custom_value=options.custom_value)
        for table in runs_tables:
            entries.append(StatisticEntry.for_tables(table["title"], [table], "Runs test"))

        note = self.insufficient_note(ctx)
        if note:
            logger.info(note)
        return LogEntry(log=self.log_text(request)), AnalyticEntry(title=self.test_title, note=note), entries
