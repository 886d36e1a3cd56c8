"""Analysis runners: dispatch computation units, aggregate, persist."""

from statflow.orchestration.base import (
    PERSISTENCE_MESSAGE,
    TIMEOUT_MESSAGE,
    AnalysisRunner,
    RunContext,
    RunnerState,
)
from statflow.orchestration.chi_square import ChiSquareRunner
from statflow.orchestration.frequencies import FrequenciesRunner
from statflow.orchestration.runs import RunsRunner
from statflow.orchestration.units import (
    ComputationUnit,
    ComputationUnitError,
    ExecutorComputationUnit,
    ExecutorUnitFactory,
    unit_factory_from_settings,
)

__all__ = [
    "PERSISTENCE_MESSAGE",
    "TIMEOUT_MESSAGE",
    "AnalysisRunner",
    "RunContext",
    "RunnerState",
    "ChiSquareRunner",
    "FrequenciesRunner",
    "RunsRunner",
    "ComputationUnit",
    "ComputationUnitError",
    "ExecutorComputationUnit",
    "ExecutorUnitFactory",
    "unit_factory_from_settings",
]
