"""Computation unit handlers.

Each handler takes the camelCase request payload posted to a computation unit
and returns the response message. Calculation failures are reported inside
the response; a malformed payload raises, which the unit reports as a
transport failure.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from statflow.compute.chi_square import ChiSquareCalculator, descriptive_block
from statflow.compute.frequency import FrequencyCalculator
from statflow.compute.runs import RunsCalculator
from statflow.config import ChiSquareOptions, RunsOptions, StatisticsOptions
from statflow.variables import Variable

logger = logging.getLogger(__name__)

DESCRIPTIVE_ANALYSIS = "descriptiveStatistics"


def frequencies_worker(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Frequency tables and statistics for every variable of the request."""
    variable_data = payload["variableData"]
    options = payload.get("options") or {}
    weights = payload.get("weightVariableData")

    statistics_payload = options.get("statisticsOptions")
    statistics_options = StatisticsOptions.from_dict(statistics_payload) if statistics_payload else None
    method = (statistics_payload or {}).get("percentileMethod", "waverage")

    statistics: Dict[str, Any] = {}
    frequency_tables: Dict[str, Any] = {}
    try:
        for item in variable_data:
            variable = Variable.model_validate(item["variable"])
            calculator = FrequencyCalculator(variable, item.get("data") or [], weights)
            if options.get("displayDescriptive") and statistics_options is not None:
                keys = statistics_options.requested_stats()
                levels = statistics_options.percentiles.levels()
                statistics[variable.name] = calculator.statistics(keys, levels, method)
            if options.get("displayFrequency"):
                frequency_tables[variable.name] = calculator.frequency_table()
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.debug(f"Frequencies calculation failed: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "results": {"statistics": statistics, "frequencyTables": frequency_tables},
    }


def chi_square_worker(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Chi-Square test (and optional descriptive statistics) for one variable."""
    variable = Variable.model_validate(payload["variable1"])
    data = payload.get("data1") or []
    analysis_type = payload.get("analysisType") or ["chiSquare"]
    options = ChiSquareOptions.from_dict(payload.get("options") or {})

    try:
        calculator = ChiSquareCalculator(variable, data, options)
        results = calculator.get_output()
        if DESCRIPTIVE_ANALYSIS in analysis_type:
            results["descriptiveStatistics"] = descriptive_block(
                variable, calculator.values, options.display_statistics
            )
    except (ValueError, TypeError, ArithmeticError) as e:
        return {"variableName": variable.name, "status": "error", "error": str(e)}
    return {"variableName": variable.name, "status": "success", "results": results}


def runs_worker(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Runs test (and optional descriptive statistics) for one variable."""
    variable = Variable.model_validate(payload["variable1"])
    data = payload.get("data1") or []
    analysis_type = payload.get("analysisType") or ["runs"]
    options = RunsOptions.from_dict(payload.get("options") or {})

    try:
        calculator = RunsCalculator(variable, data, options)
        results = calculator.get_output()
        if DESCRIPTIVE_ANALYSIS in analysis_type:
            results["descriptiveStatistics"] = descriptive_block(
                variable, calculator.values, options.display_statistics
            )
    except (ValueError, TypeError, ArithmeticError) as e:
        return {"variableName": variable.name, "status": "error", "error": str(e)}
    return {"variableName": variable.name, "status": "success", "results": results}
