"""Tests for chart payloads built from frequency tables."""

from __future__ import annotations

from statflow.config import ChartOptions
from statflow.tables import build_chart_payloads
from statflow.variables import Variable


def _table():
    return {
        "rows": [
            {"label": 1, "frequency": 2, "percent": 20.0},
            {"label": 2, "frequency": 5, "percent": 50.0},
            {"label": 4, "frequency": 3, "percent": 30.0},
        ]
    }


def test_bar_chart_uses_value_labels_and_percentages():
    variable = Variable(name="q", values=[{"value": 2, "label": "Two"}])
    charts = build_chart_payloads(variable, _table(), ChartOptions(chart_type="bar", values="percentages"))

    assert len(charts) == 1
    assert charts[0]["chartType"] == "bar"
    assert charts[0]["data"][1] == {"category": "Two", "value": 50.0}


def test_histogram_counts_and_normal_curve():
    variable = Variable(name="score", measure="scale")
    charts = build_chart_payloads(
        variable, _table(), ChartOptions(chart_type="histogram", show_normal_curve=True)
    )

    chart = charts[0]
    assert sum(bin_["count"] for bin_ in chart["bins"]) == 10
    assert chart["bins"][0]["start"] == 1.0
    assert chart["bins"][-1]["end"] == 4.0
    assert len(chart["normalCurve"]) == 50


def test_histogram_skipped_for_nominal_variables():
    variable = Variable(name="color", type="STRING")
    assert build_chart_payloads(variable, _table(), ChartOptions(chart_type="histogram")) == []


def test_no_chart_requested():
    assert build_chart_payloads(Variable(name="x"), _table(), None) == []
    assert build_chart_payloads(Variable(name="x"), _table(), ChartOptions()) == []
