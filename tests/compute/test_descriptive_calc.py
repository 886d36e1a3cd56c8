"""Tests for weighted descriptive statistics and percentiles."""

from __future__ import annotations

import numpy as np
import pytest
from scipy import stats

from statflow.compute import DescriptiveCalculator, Distribution, percentile

VALUES = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]


def test_moments_match_scipy():
    calc = DescriptiveCalculator(VALUES)

    assert calc.mean() == pytest.approx(5.0)
    assert calc.variance() == pytest.approx(np.var(VALUES, ddof=1))
    assert calc.std_dev() == pytest.approx(np.std(VALUES, ddof=1))
    assert calc.se_mean() == pytest.approx(stats.sem(VALUES))
    assert calc.skewness() == pytest.approx(stats.skew(VALUES, bias=False))
    assert calc.kurtosis() == pytest.approx(stats.kurtosis(VALUES, bias=False))
    assert calc.range() == 7.0
    assert calc.sum() == 40.0


def test_weights_repeat_cases():
    weighted = DescriptiveCalculator([2.0, 4.0, 5.0, 7.0, 9.0], weights=[1, 3, 2, 1, 1])
    plain = DescriptiveCalculator(VALUES)

    assert weighted.mean() == pytest.approx(plain.mean())
    assert weighted.variance() == pytest.approx(plain.variance())
    assert weighted.median("haverage") == pytest.approx(plain.median("haverage"))


def test_small_samples_leave_higher_moments_undefined():
    calc = DescriptiveCalculator([1.0, 2.0])
    assert calc.skewness() is None
    assert calc.kurtosis() is None
    assert DescriptiveCalculator([]).mean() is None


def test_haverage_percentiles():
    dist = Distribution.from_values([1.0, 2.0, 3.0, 4.0], [1, 1, 1, 1])
    assert percentile(dist, 50, "haverage") == pytest.approx(2.5)
    assert percentile(dist, 25, "haverage") == pytest.approx(1.25)
    assert percentile(dist, 1, "haverage") == 1.0
    assert percentile(dist, 99, "haverage") == 4.0


def test_tukey_hinges():
    dist = Distribution.from_values([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0], [1] * 7)
    assert percentile(dist, 25, "tukeyhinges") == 2.5
    assert percentile(dist, 50, "tukeyhinges") == 4.0
    assert percentile(dist, 75, "tukeyhinges") == 5.5


def test_unknown_percentile_method():
    dist = Distribution.from_values([1.0], [1])
    with pytest.raises(ValueError, match="Unknown percentile method"):
        percentile(dist, 50, "nearest")


def test_statistics_by_key():
    calc = DescriptiveCalculator(VALUES)
    result = calc.statistics(["Mean", "Minimum", "Maximum", "Unknown"])
    assert result == {"Mean": 5.0, "Minimum": 2.0, "Maximum": 9.0}
