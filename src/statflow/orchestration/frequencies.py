"""Frequencies runner: one computation unit for the whole selection."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from statflow.compute.workers import frequencies_worker
from statflow.config import FrequenciesRequest, column_for
from statflow.orchestration.base import AnalysisRunner, RunContext, RunOutput
from statflow.orchestration.units import WorkerHandler
from statflow.results.models import AnalyticEntry, FrequenciesResponse, LogEntry, StatisticEntry
from statflow.tables import build_chart_payloads, format_frequency_table, format_statistics_table

logger = logging.getLogger(__name__)


class FrequenciesRunner(AnalysisRunner):
    """Frequency tables, the Statistics table and optional charts for the selected variables."""

    worker_label = "Frequencies"

    @property
    def handler(self) -> WorkerHandler:
        return frequencies_worker

    def build_payloads(self, request: FrequenciesRequest) -> List[Dict[str, Any]]:
        statistics_options = request.statistics_options if request.show_statistics else None
        wants_charts = request.show_charts and request.chart_options is not None
        return [
            {
                "variableData": [
                    {"variable": variable.to_payload(), "data": column_for(request.data, variable)}
                    for variable in request.variables
                ],
                "weightVariableData": list(request.weights) if request.weights is not None else None,
                "options": {
                    # charts are drawn from the frequency distribution
                    "displayFrequency": request.show_frequency_tables or wants_charts,
                    "displayDescriptive": statistics_options is not None,
                    "statisticsOptions": statistics_options.to_payload() if statistics_options else None,
                    "chartOptions": request.chart_options.to_payload() if wants_charts else None,
                },
            }
        ]

    def accept_message(self, ctx: RunContext, message: Mapping[str, Any]) -> None:
        names = ", ".join(variable.name for variable in ctx.request.variables)
        try:
            response = FrequenciesResponse.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Malformed Frequencies response: {e}")
            ctx.record_error(f"Calculation failed for {names}: malformed response")
            return
        if not response.success or response.results is None:
            logger.warning(f"Frequencies calculation failed: {response.error}")
            ctx.record_error(f"Calculation failed for {names}: {response.error or 'unknown error'}")
            return
        ctx.results["statistics"] = response.results.statistics
        ctx.results["frequencyTables"] = response.results.frequency_tables

    def build_output(self, ctx: RunContext) -> Optional[RunOutput]:
        request: FrequenciesRequest = ctx.request
        statistics = ctx.results.get("statistics") or {}
        frequency_tables = ctx.results.get("frequencyTables") or {}

        entries: List[StatisticEntry] = []
        actions = []

        if request.show_statistics and statistics:
            pairs = [
                (variable, statistics[variable.name])
                for variable in request.variables
                if variable.name in statistics
            ]
            table = format_statistics_table(pairs, request.statistics_options)
            if table is not None:
                actions.append("Statistics")
                entries.append(
                    StatisticEntry.for_tables(table["title"], [table], "Descriptive statistics summary")
                )

        if request.show_frequency_tables and frequency_tables:
            actions.insert(0, "Frequencies")
            for variable in request.variables:
                raw_table = frequency_tables.get(variable.name)
                if raw_table is None:
                    continue
                table = format_frequency_table(raw_table, variable)
                entries.append(StatisticEntry.for_tables(table["title"], [table], "Frequency table"))

        if request.show_charts and request.chart_options is not None:
            for variable in request.variables:
                raw_table = frequency_tables.get(variable.name)
                if raw_table is None:
                    continue
                for chart in build_chart_payloads(variable, raw_table, request.chart_options):
                    entries.append(
                        StatisticEntry.for_chart(
                            f"{chart['title']} {chart['chartType'].title()} Chart",
                            chart,
                            f"{chart['chartType']} chart of {variable.name}",
                        )
                    )

        if not actions:
            return None

        names = [variable.name for variable in request.variables]
        log = LogEntry(log=f"{' & '.join(actions).upper()} VARIABLES={', '.join(names)}")
        analytic = AnalyticEntry(
            title=" & ".join(actions),
            note=f"Analysis performed on: {', '.join(names)}",
        )
        logger.debug(f"Frequencies output: {[entry.title for entry in entries]}")
        return log, analytic, entries
