"""Tests for the Chi-Square, Descriptive Statistics and Runs Test tables."""

from __future__ import annotations

import pytest

from statflow.config import DisplayStatisticsOptions
from statflow.tables import (
    format_descriptive_statistics_table,
    format_error_table,
    format_frequencies_table,
    format_runs_test_table,
    format_test_statistics_table,
)
from statflow.variables import Variable


def _chi_result(variable, categories, observed, expected, insufficient=()):
    return {
        "variable1": variable.to_payload(),
        "frequencies": {
            "categoryList": categories,
            "observedN": observed,
            "expectedN": expected,
            "residual": [
                obs - (expected[i] if isinstance(expected, list) else expected) for i, obs in enumerate(observed)
            ],
            "N": sum(observed),
        },
        "testStatistics": {"ChiSquare": 5.0, "DF": len(categories) - 1, "PValue": 0.0821},
        "metadata": {"hasInsufficientData": bool(insufficient), "insufficientType": list(insufficient)},
    }


def test_specified_range_includes_unobserved_values():
    variable = Variable(name="rating", measure="ordinal")
    result = _chi_result(variable, ["1", "2", "3"], [10, 15, 5], 10)

    table = format_frequencies_table([result], specified_range=True, expected_range=(0, 3))

    assert table["title"] == "Frequencies"
    rows = table["rows"]
    assert [row["rowHeader"][0] for row in rows] == [1, 2, 3, 4, "Total"]

    zero = rows[0]
    assert zero["observedN0"] == 0
    assert zero["category0"] == ""
    assert zero["expectedN0"] == "10.0"
    assert zero["residual0"] == "-10.0"

    two = rows[2]
    assert two["category0"] == "2"
    assert two["observedN0"] == 15
    assert two["residual0"] == "5.0"
    assert rows[-1]["observedN0"] == 30

    group = table["columnHeaders"][1]
    assert group["key"] == "var_0"
    assert [child["key"] for child in group["children"]] == ["category0", "observedN0", "expectedN0", "residual0"]


def test_specified_range_blank_cells_for_insufficient_variable():
    good = Variable(name="a")
    empty = Variable(name="b")
    results = [
        _chi_result(good, [1, 2], [3, 1], 2),
        _chi_result(empty, [], [], 0, insufficient=("empty",)),
    ]

    table = format_frequencies_table(results, specified_range=True, expected_range=(1, 2))

    assert len(table["columnHeaders"]) == 2
    assert table["rows"][0]["observedN1"] == ""
    assert table["rows"][-1]["observedN1"] == ""


def test_frequencies_from_data_one_table_per_variable():
    first = Variable(name="a", label="First")
    second = Variable(name="b", values=[{"value": 1, "label": "One"}])
    results = [
        _chi_result(first, [1, 2], [4, 6], 5),
        _chi_result(second, [1, 2, 3], [1, 2, 3], [1.0, 2.0, 3.0]),
    ]

    tables = format_frequencies_table(results)

    assert [table["title"] for table in tables] == ["First", "b"]
    assert tables[0]["rows"][0] == {"rowHeader": ["1"], "observedN": 4, "expectedN": "5.0", "residual": "-1.0"}
    assert tables[1]["rows"][0]["rowHeader"] == ["One"]
    assert tables[1]["rows"][2]["expectedN"] == "3.0"
    assert tables[0]["rows"][-1]["rowHeader"] == ["Total"]
    assert tables[0]["rows"][-1]["observedN"] == 10


def test_empty_results_yield_placeholders():
    assert format_frequencies_table([])["title"] == "Frequencies"
    assert format_test_statistics_table([])["title"] == "No Data"
    assert format_descriptive_statistics_table([])["title"] == "Descriptive Statistics"
    assert format_runs_test_table([])[0]["columnHeaders"][0]["header"] == "No Data"


def test_test_statistics_rows():
    variable = Variable(name="a")
    table = format_test_statistics_table([_chi_result(variable, [1, 2], [4, 6], 5)])

    assert table["title"] == "Test Statistics"
    values = {row["rowHeader"][0]: row["var_0"] for row in table["rows"]}
    assert values == {"Chi-Square": "5.000", "df": 1, "Asymp. Sig.": "0.082"}


def test_descriptive_statistics_precision():
    variable = Variable(name="score", label="Score", decimals=1)
    result = {
        "variable1": variable.to_payload(),
        "descriptiveStatistics": {
            "N1": 8,
            "Mean1": 3.14159,
            "StdDev1": 1.41421356,
            "Min1": 1.0,
            "Max1": 6.0,
            "Percentile25_1": 2.0,
            "Percentile50_1": 3.0,
            "Percentile75_1": 4.5,
        },
    }

    table = format_descriptive_statistics_table(
        [result], DisplayStatisticsOptions(descriptive=True, quartiles=True)
    )

    row = table["rows"][0]
    assert row["rowHeader"] == ["Score"]
    assert row["N"] == 8
    assert row["Mean"] == "3.142"
    assert row["StdDev"] == "1.4142"
    assert row["Min"] == "1.0"
    assert row["Percentile75"] == "4.5"
    percentile_group = table["columnHeaders"][-1]
    assert [child["header"] for child in percentile_group["children"]] == ["25th", "50th (Median)", "75th"]


def _runs_result(variable, **cuts):
    return {"variable1": variable.to_payload(), "runsTest": cuts}


def test_runs_tables_per_cut_point():
    variable = Variable(name="x", decimals=1)
    stats = {"TestValue": 4.25, "CasesBelow": 5, "CasesAbove": 5, "Total": 10, "Runs": 3, "Z": -1.8766, "PValue": 0.0606}
    result = _runs_result(variable, median=stats, mean=dict(stats, TestValue=4.3), custom=dict(stats, TestValue=2.0))

    tables = format_runs_test_table([result], custom_value=2)

    assert [table["title"] for table in tables] == [
        "Runs Test (Median)",
        "Runs Test (Mean)",
        "Runs Test (Custom (2))",
    ]
    rows = {row["rowHeader"][0]: row["var_0"] for row in tables[0]["rows"]}
    assert rows["Test Value"] == "4.250"
    assert rows["Cases < Test Value"] == 5
    assert rows["Number of Runs"] == 3
    assert rows["Z"] == "-1.877"
    assert rows["Asymp. Sig. (2-tailed)"] == "0.061"


@pytest.mark.parametrize(
    "custom_value, title",
    [(1234567, "Runs Test (Custom (1234567))"), (2.5, "Runs Test (Custom (2.5))"), (-0.125, "Runs Test (Custom (-0.125))")],
)
def test_runs_custom_title_keeps_the_entered_value(custom_value, title):
    variable = Variable(name="x")
    stats = {"TestValue": custom_value, "CasesBelow": 5, "CasesAbove": 5, "Total": 10, "Runs": 3, "Z": 0.5, "PValue": 0.6}

    table = format_runs_test_table([_runs_result(variable, custom=stats)], custom_value=custom_value)[0]

    assert table["title"] == title


def test_runs_table_date_test_value():
    variable = Variable(name="visit", type="DATE")
    stats = {"TestValue": 0, "CasesBelow": 1, "CasesAbove": 2, "Total": 3, "Runs": 2, "Z": None, "PValue": None}

    table = format_runs_test_table([_runs_result(variable, median=stats)])[0]

    rows = {row["rowHeader"][0]: row["var_0"] for row in table["rows"]}
    assert rows["Test Value"] == "14-10-1582"
    assert rows["Z"] == ""


def test_runs_table_fallback_without_test_values():
    variable = Variable(name="x")
    stats = {"TestValue": None, "CasesBelow": 0, "CasesAbove": 0, "Total": 0, "Runs": 0}

    tables = format_runs_test_table([_runs_result(variable, median=stats)])

    assert [table["title"] for table in tables] == ["Runs Test"]


def test_error_table_is_an_untitled_placeholder():
    table = format_error_table()
    assert table["title"] == ""
    assert table["rows"] == []
    assert table["columnHeaders"] == [{"header": "No Data", "key": "noData"}]
