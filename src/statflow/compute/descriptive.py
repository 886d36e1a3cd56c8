"""Weighted descriptive statistics and percentile definitions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

PERCENTILE_METHODS = ("waverage", "haverage", "tukeyhinges")


@dataclass(frozen=True)
class Distribution:
    """Sorted distinct values with weighted counts.

    Attributes:
        y: Distinct values in ascending order
        c: Weighted count of each value
        cc: Cumulative weighted counts
        W: Total weight of valid cases
        N: Number of valid cases (unweighted)
        T: Total weight of all cases with a valid weight, missing included
    """

    y: List[float]
    c: List[float]
    cc: List[float]
    W: float
    N: int
    T: float

    @classmethod
    def from_values(cls, values: Sequence[float], weights: Sequence[float], total: Optional[float] = None) -> Distribution:
        counts: Dict[float, float] = {}
        for value, weight in zip(values, weights):
            counts[value] = counts.get(value, 0.0) + weight
        y = sorted(counts)
        c = [counts[value] for value in y]
        cc = list(np.cumsum(c)) if c else []
        W = float(sum(c))
        return cls(y=y, c=c, cc=[float(v) for v in cc], W=W, N=len(values), T=W if total is None else total)


def percentile(dist: Distribution, p: float, method: str = "waverage") -> Optional[float]:
    """Percentile ``p`` (0-100) of a weighted distribution.

    Args:
        dist: Weighted distribution
        p: Percentile level
        method: ``waverage`` (weighted average at W*p), ``haverage``
            (weighted average at (W+1)*p) or ``tukeyhinges`` (quartiles only,
            other levels fall back to ``waverage``)
    """
    if dist.W <= 0 or not dist.y:
        return None
    method = (method or "waverage").lower()
    if method not in PERCENTILE_METHODS:
        raise ValueError(f"Unknown percentile method: {method}")
    y, c, cc, W = dist.y, dist.c, dist.cc, dist.W

    if method == "tukeyhinges":
        target = round(p)
        if target not in (25, 50, 75):
            return percentile(dist, p, "waverage")
        positions: List[float] = []
        for value, count in zip(y, c):
            positions.extend([value] * max(1, int(round(count))))
        n = len(positions)
        # hinge depth, counted from either end
        depth = (math.floor((n + 1) / 2) + 1) / 2
        low, high = math.floor(depth), math.ceil(depth)
        if target == 25:
            return (positions[low - 1] + positions[high - 1]) / 2
        if target == 75:
            return (positions[n - low] + positions[n - high]) / 2
        if n % 2 == 1:
            return positions[(n + 1) // 2 - 1]
        return (positions[n // 2 - 1] + positions[n // 2]) / 2

    if method == "waverage":
        tc1 = W * p / 100
        if tc1 <= 0:
            return y[0]
        if tc1 >= W:
            return y[-1]
        k1 = next((i for i, cum in enumerate(cc) if cum >= tc1), None)
        if k1 is None:
            return y[-1]
        cc_prev = cc[k1 - 1] if k1 > 0 else 0.0
        y_prev = y[k1 - 1] if k1 > 0 else y[0]
        if c[k1] == 0:
            return y[k1]
        g = (tc1 - cc_prev) / c[k1]
        return (1 - g) * y_prev + g * y[k1]

    # haverage
    r = (W + 1) * p / 100
    if r <= 1:
        return y[0]
    if r >= W:
        return y[-1]
    lower_pos, upper_pos = math.floor(r), math.ceil(r)
    lower_value = upper_value = None
    for value, cum in zip(y, cc):
        if lower_value is None and cum >= lower_pos:
            lower_value = value
        if cum >= upper_pos:
            upper_value = value
            break
    lower_value = y[0] if lower_value is None else lower_value
    upper_value = y[-1] if upper_value is None else upper_value
    frac = r - lower_pos
    return (1 - frac) * lower_value + frac * upper_value


class DescriptiveCalculator:
    """Weighted moments and order statistics of one numeric variable.

    Moment formulas follow the usual SPSS definitions, with W the total
    weight: variance ``M2 / (W - 1)``, skewness and kurtosis bias-corrected,
    and their standard errors computed from W alone.
    """

    def __init__(self, values: Sequence[float], weights: Optional[Sequence[float]] = None, total: Optional[float] = None):
        self.values = np.asarray(values, dtype=float)
        self.weights = np.ones_like(self.values) if weights is None else np.asarray(weights, dtype=float)
        self.W = float(self.weights.sum())
        self.distribution = Distribution.from_values(list(self.values), list(self.weights), total)

    @property
    def empty(self) -> bool:
        return self.W <= 0

    def mean(self) -> Optional[float]:
        if self.empty:
            return None
        return float(np.sum(self.weights * self.values) / self.W)

    def _central_moment(self, order: int) -> float:
        return float(np.sum(self.weights * (self.values - self.mean()) ** order))

    def variance(self) -> Optional[float]:
        if self.W <= 1:
            return None
        return self._central_moment(2) / (self.W - 1)

    def std_dev(self) -> Optional[float]:
        variance = self.variance()
        return None if variance is None else math.sqrt(variance)

    def se_mean(self) -> Optional[float]:
        sd = self.std_dev()
        return None if sd is None else sd / math.sqrt(self.W)

    def skewness(self) -> Optional[float]:
        W, sd = self.W, self.std_dev()
        if W <= 2 or not sd:
            return None
        return W * self._central_moment(3) / ((W - 1) * (W - 2) * sd ** 3)

    def se_skewness(self) -> Optional[float]:
        W = self.W
        if W <= 2:
            return None
        return math.sqrt(6 * W * (W - 1) / ((W - 2) * (W + 1) * (W + 3)))

    def kurtosis(self) -> Optional[float]:
        W, sd = self.W, self.std_dev()
        if W <= 3 or not sd:
            return None
        m2, m4 = self._central_moment(2), self._central_moment(4)
        return ((W + 1) * W * m4 - 3 * m2 ** 2 * (W - 1)) / ((W - 1) * (W - 2) * (W - 3) * sd ** 4)

    def se_kurtosis(self) -> Optional[float]:
        W, se_skew = self.W, self.se_skewness()
        if W <= 3 or se_skew is None:
            return None
        return math.sqrt(4 * (W ** 2 - 1) * se_skew ** 2 / ((W - 3) * (W + 5)))

    def minimum(self) -> Optional[float]:
        return None if self.empty else float(self.values[self.weights > 0].min())

    def maximum(self) -> Optional[float]:
        return None if self.empty else float(self.values[self.weights > 0].max())

    def range(self) -> Optional[float]:
        if self.empty:
            return None
        return self.maximum() - self.minimum()

    def sum(self) -> Optional[float]:
        return None if self.empty else float(np.sum(self.weights * self.values))

    def percentile(self, p: float, method: str = "waverage") -> Optional[float]:
        return percentile(self.distribution, p, method)

    def median(self, method: str = "waverage") -> Optional[float]:
        return self.percentile(50, method)

    def statistics(self, keys: Sequence[str], method: str = "waverage") -> Dict[str, Optional[float]]:
        """Compute the statistics named by ``keys`` (``Mean``, ``StdDev``, ...)."""
        calculators = {
            "Mean": self.mean,
            "SEMean": self.se_mean,
            "Median": lambda: self.median(method),
            "StdDev": self.std_dev,
            "Variance": self.variance,
            "Skewness": self.skewness,
            "SESkewness": self.se_skewness,
            "Kurtosis": self.kurtosis,
            "SEKurtosis": self.se_kurtosis,
            "Range": self.range,
            "Minimum": self.minimum,
            "Maximum": self.maximum,
            "Sum": self.sum,
        }
        stats = {}
        for key in keys:
            if key in calculators:
                stats[key] = calculators[key]()
        return stats
