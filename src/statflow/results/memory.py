"""In-memory result sink."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from statflow.results.base import ResultSink
from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry


@dataclass
class StoredAnalytic:
    id: int
    log_id: int
    title: str
    note: Optional[str] = None
    statistics: List[StatisticEntry] = field(default_factory=list)


class InMemoryResultSink(ResultSink):
    """
    Keeps every entry in process memory.

    Identifiers are 1-based counters per entry kind.
    """

    def __init__(self):
        self.logs: Dict[int, str] = {}
        self.analytics: Dict[int, StoredAnalytic] = {}

    async def add_log(self, entry: LogEntry) -> int:
        log_id = len(self.logs) + 1
        self.logs[log_id] = entry.log
        return log_id

    async def add_analytic(self, log_id: int, entry: AnalyticEntry) -> int:
        if log_id not in self.logs:
            raise KeyError(f"Unknown log id: {log_id}")
        analytic_id = len(self.analytics) + 1
        self.analytics[analytic_id] = StoredAnalytic(
            id=analytic_id, log_id=log_id, title=entry.title, note=entry.note
        )
        return analytic_id

    async def add_statistic(self, analytic_id: int, entry: StatisticEntry) -> None:
        if analytic_id not in self.analytics:
            raise KeyError(f"Unknown analytic id: {analytic_id}")
        self.analytics[analytic_id].statistics.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        """Everything stored, with ``output_data`` decoded."""
        return {
            "logs": [{"id": log_id, "log": text} for log_id, text in self.logs.items()],
            "analytics": [
                {
                    "id": analytic.id,
                    "log_id": analytic.log_id,
                    "title": analytic.title,
                    "note": analytic.note,
                    "statistics": [
                        {
                            "title": stat.title,
                            "components": stat.components,
                            "description": stat.description,
                            "output_data": json.loads(stat.output_data),
                        }
                        for stat in analytic.statistics
                    ],
                }
                for analytic in self.analytics.values()
            ],
        }


def export_json(sink: InMemoryResultSink, path: Union[Path, str]) -> Path:
    """Write the sink contents to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(sink.to_dict(), handle, indent=2)
    return path
