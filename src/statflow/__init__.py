"""
statflow: result formatting and analysis orchestration for descriptive
statistics and nonparametric tests.

This package provides:
- Frequencies (frequency tables, summary statistics, chart data)
- One-sample Chi-Square goodness-of-fit test
- Runs Test for randomness around median, mean, mode or a custom cut point
- Display-ready table builders and pluggable result sinks (memory, SQLite)
- A Typer CLI
"""

__version__ = "0.1.0"

from statflow.config import (
    AnalysisSettings,
    AnalysisValidationError,
    ChiSquareOptions,
    ChiSquareRequest,
    FrequenciesRequest,
    RunsOptions,
    RunsRequest,
    StatisticsOptions,
)
from statflow.orchestration import ChiSquareRunner, FrequenciesRunner, RunsRunner
from statflow.results import InMemoryResultSink, SQLiteResultSink
from statflow.variables import Variable

__all__ = [
    "__version__",
    "AnalysisSettings",
    "AnalysisValidationError",
    "ChiSquareOptions",
    "ChiSquareRequest",
    "FrequenciesRequest",
    "RunsOptions",
    "RunsRequest",
    "StatisticsOptions",
    "ChiSquareRunner",
    "FrequenciesRunner",
    "RunsRunner",
    "InMemoryResultSink",
    "SQLiteResultSink",
    "Variable",
]
