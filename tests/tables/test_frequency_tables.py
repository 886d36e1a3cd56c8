"""Tests for the Frequencies frequency and Statistics tables."""

from __future__ import annotations

from statflow.config import CentralTendencyOptions, DispersionOptions, PercentileOptions, StatisticsOptions
from statflow.formatting import date_string_to_spss_seconds
from statflow.tables import format_frequency_table, format_statistics_table
from statflow.tables.frequencies import MULTIPLE_MODES_NOTE, ORDINAL_CAUTION_NOTE
from statflow.variables import Variable


def _row(table, label):
    return next(row for row in table["rows"] if row["rowHeader"][-1] == label)


def _raw_table():
    return {
        "title": "Gender",
        "rows": [
            {"label": "F", "frequency": 2, "percent": 200 / 6, "validPercent": 40.0, "cumulativePercent": 40.0},
            {"label": "M", "frequency": 3, "percent": 50.0, "validPercent": 60.0, "cumulativePercent": 100.0},
        ],
        "summary": {"valid": 5, "missing": 1, "total": 6},
    }


def test_frequency_table_accounting():
    table = format_frequency_table(_raw_table(), Variable(name="g", type="STRING"))

    assert table["title"] == "Gender"
    valid = _row(table, "Valid")
    valid_total = valid["children"][-1]
    assert valid_total["rowHeader"] == [None, "Total"]
    assert valid_total["frequency"] == 5
    assert valid_total["validPercent"] == "100.0"
    assert valid_total["percent"] == "83.3"
    assert valid_total["cumulativePercent"] == ""

    missing = _row(table, "Missing")
    assert missing["children"][0]["rowHeader"] == [None, "System"]
    assert missing["children"][0]["frequency"] == 1

    grand_total = table["rows"][-1]
    assert grand_total["rowHeader"] == ["Total"]
    assert grand_total["frequency"] == 6


def test_frequency_table_uses_value_labels():
    variable = Variable(name="g", type="STRING", values=[{"value": "F", "label": "Female"}])
    table = format_frequency_table(_raw_table(), variable)
    labels = [child["rowHeader"][1] for child in table["rows"][0]["children"]]
    assert labels == ["Female", "M", "Total"]


def test_frequency_table_without_rows_uses_summary():
    raw = {"title": "Var1 Frequencies", "rows": [], "summary": {"valid": 3, "missing": 0, "total": 3}}
    table = format_frequency_table(raw, None)

    assert [row["rowHeader"][0] for row in table["rows"]] == ["Valid", "Total"]
    assert table["rows"][0]["children"][0]["frequency"] == 3
    assert table["rows"][-1]["frequency"] == 3


def test_statistics_table_empty_input_is_none():
    assert format_statistics_table([]) is None


def test_statistics_table_row_order_and_values():
    variable = Variable(name="score", label="Score", measure="scale")
    stats = {"N": 10, "Missing": 0, "Mean": 4.5, "Median": 4.0, "Mode": [3.0], "StdDev": 1.234}

    table = format_statistics_table([(variable, stats)])

    assert table["title"] == "Statistics"
    assert [row["rowHeader"][0] for row in table["rows"]] == ["N", "Mean", "Median", "Mode", "Std. Deviation"]
    assert table["rows"][0]["children"][0]["score"] == 10
    assert _row(table, "Mean")["score"] == "4.50"
    assert _row(table, "Std. Deviation")["score"] == "1.23"
    assert "footer" not in table


def test_statistics_table_respects_requested_options():
    variable = Variable(name="score", measure="scale")
    stats = {"N": 4, "Missing": 0, "Mean": 2.0, "Sum": 8.0, "Mode": [1.0]}
    options = StatisticsOptions(central_tendency=CentralTendencyOptions(mean=True))

    table = format_statistics_table([(variable, stats)], options)

    assert [row["rowHeader"][0] for row in table["rows"]] == ["N", "Mean"]


def test_nominal_variable_hides_ordered_statistics():
    variable = Variable(name="color", type="STRING", measure="nominal")
    table = format_statistics_table([(variable, {"N": 3, "Missing": 0, "Median": 2.0, "Mode": ["red"]})])

    assert _row(table, "Median")["color"] == ""
    assert _row(table, "Mode")["color"] == "red"


def test_multiple_modes_footnote():
    variable = Variable(name="score", measure="scale")
    table = format_statistics_table([(variable, {"N": 4, "Missing": 0, "Mode": [5.0, 2.0]})])

    assert _row(table, "Mode")["score"] == "2.00<sup>a</sup>"
    assert table["footer"] == f"a. {MULTIPLE_MODES_NOTE}"


def test_ordinal_caution_follows_multiple_modes_note():
    variable = Variable(name="rank", label="Rank", measure="ordinal")
    table = format_statistics_table([(variable, {"N": 4, "Missing": 0, "Mean": 2.5, "Mode": [1.0, 2.0]})])

    assert table["columnHeaders"][-1]["header"] == "Rank<sup>b</sup>"
    assert table["footer"] == f"a. {MULTIPLE_MODES_NOTE}\nb. {ORDINAL_CAUTION_NOTE}"


def test_date_variable_suppression():
    variable = Variable(name="visit", type="DATE", measure="scale")
    day = date_string_to_spss_seconds("15-06-2021")
    stats = {
        "N": 3,
        "Missing": 0,
        "Mean": day,
        "SEMean": 1.0,
        "StdDev": 86400.0,
        "Variance": 1.0,
        "Skewness": 0.1,
        "Kurtosis": 0.2,
        "Range": 86400.0,
        "Minimum": day,
        "Maximum": day,
        "Sum": day,
        "Median": day,
        "Mode": ["15-06-2021"],
        "Percentiles": {"25": day, "75": day},
    }
    options = StatisticsOptions(
        percentiles=PercentileOptions(quartiles=True),
        central_tendency=CentralTendencyOptions(mean=True, median=True, mode=True, sum=True),
        dispersion=DispersionOptions(
            std_deviation=True, variance=True, range=True, minimum=True, maximum=True, std_error_mean=True
        ),
    )

    table = format_statistics_table([(variable, stats)], options)

    for label in ("Mean", "Std. Error of Mean", "Std. Deviation", "Variance", "Range", "Minimum", "Maximum", "Sum"):
        assert _row(table, label)["visit"] == "", label
    assert _row(table, "Median")["visit"] == "15-06-2021"
    assert _row(table, "Mode")["visit"] == "15-06-2021"
    percentiles = _row(table, "Percentiles")["children"]
    assert [child["rowHeader"][1] for child in percentiles] == ["25", "75"]
    assert all(child["visit"] == "15-06-2021" for child in percentiles)
