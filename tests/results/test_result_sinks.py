"""Tests for statflow.results sinks."""

from __future__ import annotations

import asyncio
import json

import pytest

from statflow.results import (
    AnalyticEntry,
    InMemoryResultSink,
    LogEntry,
    SQLiteResultSink,
    StatisticEntry,
    export_json,
)


async def _store_run(sink):
    log_id = await sink.add_log(LogEntry(log="NPAR TESTS {RUNS (MEDIAN)=x}"))
    analytic_id = await sink.add_analytic(log_id, AnalyticEntry(title="Runs Test", note="note"))
    await sink.add_statistic(analytic_id, StatisticEntry.for_tables("Runs Test (Median)", [{"title": "t"}]))
    await sink.add_statistic(analytic_id, StatisticEntry.for_chart("x Bar Chart", {"chartType": "bar"}, "chart"))
    return log_id, analytic_id


def test_memory_sink_ids_and_grouping():
    sink = InMemoryResultSink()
    log_id, analytic_id = asyncio.run(_store_run(sink))

    assert (log_id, analytic_id) == (1, 1)
    analytic = sink.analytics[1]
    assert analytic.log_id == 1
    assert [entry.title for entry in analytic.statistics] == ["Runs Test (Median)", "x Bar Chart"]
    assert [entry.components for entry in analytic.statistics] == ["table", "chart"]


def test_memory_sink_rejects_unknown_parents():
    sink = InMemoryResultSink()
    with pytest.raises(KeyError):
        asyncio.run(sink.add_analytic(7, AnalyticEntry(title="Orphan")))
    with pytest.raises(KeyError):
        asyncio.run(sink.add_statistic(3, StatisticEntry.for_tables("t", [])))


def test_export_json_decodes_output_data(tmp_path):
    sink = InMemoryResultSink()
    asyncio.run(_store_run(sink))

    path = export_json(sink, tmp_path / "out" / "results.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["logs"] == [{"id": 1, "log": "NPAR TESTS {RUNS (MEDIAN)=x}"}]
    statistics = data["analytics"][0]["statistics"]
    assert statistics[0]["output_data"] == {"tables": [{"title": "t"}]}
    assert statistics[1]["output_data"] == {"charts": [{"chartType": "bar"}]}


def test_sqlite_sink_persists_in_order(tmp_path):
    db_path = tmp_path / "results" / "statflow.db"
    sink = SQLiteResultSink(db_path)
    assert sink.latest_analytic_id() is None

    _, analytic_id = asyncio.run(_store_run(sink))

    assert db_path.exists()
    assert sink.latest_analytic_id() == analytic_id
    analytic = sink.get_analytic(analytic_id)
    assert analytic["title"] == "Runs Test"
    assert analytic["note"] == "note"
    entries = sink.list_statistics(analytic_id)
    assert [entry.title for entry in entries] == ["Runs Test (Median)", "x Bar Chart"]
    assert json.loads(entries[0].output_data) == {"tables": [{"title": "t"}]}
    assert sink.get_analytic(999) is None


def test_sqlite_sink_reopens_existing_database(tmp_path):
    db_path = tmp_path / "statflow.db"
    asyncio.run(_store_run(SQLiteResultSink(db_path)))

    reopened = SQLiteResultSink(db_path)
    _, analytic_id = asyncio.run(_store_run(reopened))

    assert analytic_id == 2
    assert len(reopened.list_statistics(1)) == 2
