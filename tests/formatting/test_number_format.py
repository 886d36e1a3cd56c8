"""Tests for number, p-value and df formatting."""

from __future__ import annotations

import math

import pytest

from statflow.formatting import (
    format_count,
    format_df,
    format_literal,
    format_number,
    format_p_value,
    format_percent,
    format_percentile_label,
)


@pytest.mark.parametrize("precision", [0, 1, 2, 5])
def test_missing_values_format_to_none(precision):
    assert format_number(None, precision) is None
    assert format_number(math.nan, precision) is None
    assert format_number(math.inf, precision) is None


def test_null_propagation_for_p_value_and_df():
    assert format_p_value(None) is None
    assert format_df(None) is None


def test_format_number_fixed_digits():
    assert format_number(3, 2) == "3.00"
    assert format_number(1.25, 1) == "1.3"
    assert format_number(-1.25, 1) == "-1.3"
    assert format_number(12.3456, 0) == "12"


def test_negative_zero_is_not_shown():
    assert format_number(-0.0001, 2) == "0.00"


@pytest.mark.parametrize("value", [0.1, 2.675, 123.456789, -7.05, 1e-9, 98765.4321])
@pytest.mark.parametrize("precision", [0, 1, 3])
def test_formatting_is_idempotent(value, precision):
    once = format_number(value, precision)
    assert format_number(float(once), precision) == once


def test_p_value_boundary():
    assert format_p_value(0.000999) == "<.001"
    assert format_p_value(0.001) == "0.001"
    assert format_p_value(0.0456) == "0.046"
    assert format_p_value(1) == "1.000"


def test_df_integer_passthrough():
    assert format_df(5) == 5
    assert isinstance(format_df(5.0), int)
    assert format_df(5.5) == "5.500"


def test_percent_and_count():
    assert format_percent(None) == "0.0"
    assert format_percent(33.333) == "33.3"
    assert format_count(4.0) == 4
    assert format_count(2.5) == "2.50"
    assert format_count(None) is None


def test_percentile_labels():
    assert format_percentile_label(25) == "25"
    assert format_percentile_label(100 / 3) == "33.3"
    assert format_percentile_label(12.5) == "12.5"


@pytest.mark.parametrize(
    "value, expected",
    [
        (5.0, "5"),
        (1234567, "1234567"),
        (12345678.0, "12345678"),
        (2.5, "2.5"),
        (0.1, "0.1"),
        (-3.75, "-3.75"),
        (0.00001, "0.00001"),
    ],
)
def test_literal_values_never_use_exponent_notation(value, expected):
    assert format_literal(value) == expected
