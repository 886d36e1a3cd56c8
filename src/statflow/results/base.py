"""Base class for result sinks."""

from __future__ import annotations

from abc import ABC, abstractmethod

from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry


class ResultSink(ABC):
    """
    Abstract destination for analysis output.

    One analysis run writes a single log entry, a single analytic grouped
    under that log, and any number of statistic entries attached to the
    analytic. Calls are awaited in order by the orchestrator.

    Usage
    -----
    >>> sink = InMemoryResultSink()
    >>> log_id = await sink.add_log(LogEntry(log="FREQUENCIES VARIABLES=age"))
    >>> analytic_id = await sink.add_analytic(log_id, AnalyticEntry(title="Frequencies"))
    >>> await sink.add_statistic(analytic_id, entry)
    """

    @abstractmethod
    async def add_log(self, entry: LogEntry) -> int:
        """
        Record the command log of a run.

        Returns
        -------
        int
            Identifier of the new log entry
        """

    @abstractmethod
    async def add_analytic(self, log_id: int, entry: AnalyticEntry) -> int:
        """
        Create the analytic (parent grouping) for a run.

        Parameters
        ----------
        log_id : int
            Log entry the analytic belongs to
        entry : AnalyticEntry
            Title and optional note

        Returns
        -------
        int
            Identifier of the new analytic
        """

    @abstractmethod
    async def add_statistic(self, analytic_id: int, entry: StatisticEntry) -> None:
        """Attach one table or chart to an analytic."""
