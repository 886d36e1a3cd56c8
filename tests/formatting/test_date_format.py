"""Tests for SPSS date conversion."""

from __future__ import annotations

from statflow.formatting import (
    date_string_to_spss_seconds,
    is_date_string,
    spss_seconds_to_date_string,
)


def test_epoch_is_zero():
    assert date_string_to_spss_seconds("14-10-1582") == 0
    assert spss_seconds_to_date_string(0) == "14-10-1582"


def test_date_round_trip():
    seconds = date_string_to_spss_seconds("01-02-2020")
    assert seconds is not None
    assert spss_seconds_to_date_string(seconds) == "01-02-2020"


def test_one_day_is_86400_seconds():
    first = date_string_to_spss_seconds("01-01-2000")
    second = date_string_to_spss_seconds("02-01-2000")
    assert second - first == 86400


def test_invalid_inputs():
    assert date_string_to_spss_seconds("31-02-2020") is None
    assert date_string_to_spss_seconds("2020-01-01") is None
    assert date_string_to_spss_seconds(12) is None
    assert spss_seconds_to_date_string(None) == ""
    assert spss_seconds_to_date_string("abc") == ""
    assert spss_seconds_to_date_string(float("nan")) == ""


def test_is_date_string():
    assert is_date_string("5-3-2021")
    assert is_date_string(" 05-03-2021 ")
    assert not is_date_string("2021-03-05")
    assert not is_date_string(20210305)
