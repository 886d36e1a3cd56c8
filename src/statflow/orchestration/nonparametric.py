"""Per-variable runners shared by the Chi-Square and Runs procedures."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from statflow.config import DisplayStatisticsOptions, column_for
from statflow.orchestration.base import AnalysisRunner, RunContext
from statflow.results.models import VariableResponse, VariableStatus, metadata_of
from statflow.variables import Variable, variable_display_name

logger = logging.getLogger(__name__)

DESCRIPTIVE_ANALYSIS = "descriptiveStatistics"


class PerVariableRunner(AnalysisRunner):
    """
    One computation unit per selected variable.

    A variable's error does not abort the others: it is recorded as
    ``Calculation failed for <name>: <error>`` and the run still completes
    once every variable has reported.
    """

    #: Test name used in the payload's ``analysisType``
    analysis_type: str = ""
    #: Test name used in insufficient-data notes
    test_title: str = ""

    def options_payload(self, request: Any) -> Dict[str, Any]:
        return request.options.to_payload()

    @staticmethod
    def display_statistics(request: Any) -> DisplayStatisticsOptions:
        return request.options.display_statistics

    def analysis_types(self, request: Any) -> List[str]:
        if self.display_statistics(request).any:
            return [DESCRIPTIVE_ANALYSIS, self.analysis_type]
        return [self.analysis_type]

    def build_payloads(self, request: Any) -> List[Dict[str, Any]]:
        analysis_type = self.analysis_types(request)
        options = self.options_payload(request)
        return [
            {
                "analysisType": list(analysis_type),
                "variable1": variable.to_payload(),
                "data1": column_for(request.data, variable),
                "options": options,
            }
            for variable in request.variables
        ]

    def accept_message(self, ctx: RunContext, message: Mapping[str, Any]) -> None:
        try:
            response = VariableResponse.model_validate(message)
        except ValidationError as e:
            name = message.get("variableName", "unknown") if isinstance(message, Mapping) else "unknown"
            logger.warning(f"Malformed response for {name}: {e}")
            ctx.record_error(f"Calculation failed for {name}: malformed response")
            return

        if response.status == VariableStatus.SUCCESS and response.results is not None:
            logger.info(f"{self.test_title}: {response.variable_name} done")
            ctx.results[response.variable_name] = response.results
            return

        error = response.error or "no results returned"
        logger.warning(f"{self.test_title}: {response.variable_name} failed: {error}")
        ctx.record_error(f"Calculation failed for {response.variable_name}: {error}")

    def ordered_results(self, ctx: RunContext) -> List[Dict[str, Any]]:
        """Successful results in selection order, each carrying its variable."""
        ordered = []
        for variable in ctx.request.variables:
            result = ctx.results.get(variable.name)
            if result is None:
                continue
            result = dict(result)
            if not result.get("variable1"):
                result["variable1"] = variable.to_payload()
            ordered.append(result)
        return ordered

    def insufficient_reason(self, result: Mapping[str, Any]) -> Optional[str]:
        """Why a variable's test could not be performed, or None."""
        metadata = metadata_of(result)
        if metadata.has_insufficient_data and "empty" in metadata.insufficient_type:
            return "no valid values"
        return None

    def insufficient_note(self, ctx: RunContext) -> Optional[str]:
        details = []
        for variable in ctx.request.variables:
            result = ctx.results.get(variable.name)
            if result is None:
                continue
            reason = self.insufficient_reason(result)
            if reason:
                details.append(f"{_label_for(variable, result)} ({reason})")
        if not details:
            return None
        return f"{self.test_title} cannot be performed on the following variables: {', '.join(details)}"


def _label_for(variable: Variable, result: Mapping[str, Any]) -> str:
    metadata = metadata_of(result)
    return metadata.variable_label or variable_display_name(variable)
