"""
Result sinks and message models.

The orchestrators never reach into global state: a ``ResultSink`` is passed
in and receives one log, one analytic and the statistic entries of a run.

Usage
-----
>>> from statflow.results import InMemoryResultSink
>>> sink = InMemoryResultSink()
>>> runner = FrequenciesRunner(sink=sink, on_close=lambda: None)
"""

from statflow.results.base import ResultSink
from statflow.results.memory import InMemoryResultSink, export_json
from statflow.results.sqlite import SQLiteResultSink
from statflow.results.models import (
    AnalyticEntry,
    Components,
    LogEntry,
    StatisticEntry,
)

__all__ = [
    "ResultSink",
    "InMemoryResultSink",
    "SQLiteResultSink",
    "export_json",
    "AnalyticEntry",
    "Components",
    "LogEntry",
    "StatisticEntry",
]
