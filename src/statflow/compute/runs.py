"""Wald-Wolfowitz runs test for one variable."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Union

from scipy.stats import norm

from statflow.compute.descriptive import DescriptiveCalculator
from statflow.compute.preprocess import is_missing, to_numeric
from statflow.config import RunsOptions
from statflow.variables import Variable

logger = logging.getLogger(__name__)


class RunsCalculator:
    """Runs above and below one or more cut points.

    A case is below the cut point when ``x < cut`` and at/above otherwise. A
    sequence with a single run cannot be tested: Z and the p-value are left
    undefined and the variable is flagged with ``single <cut point>``.
    """

    def __init__(self, variable: Variable, data: Sequence[Any], options: Optional[RunsOptions] = None):
        self.variable = variable
        self.options = options or RunsOptions()
        self.values: List[float] = [
            number
            for number in (
                to_numeric(raw) for raw in data if not is_missing(raw, variable.missing, numeric=True)
            )
            if number is not None
        ]
        self.N = len(self.values)
        self.insufficient_type: List[str] = []
        if self.N == 0:
            self.insufficient_type.append("empty")

    def mean(self) -> Optional[float]:
        return DescriptiveCalculator(self.values).mean() if self.values else None

    def median(self) -> Optional[float]:
        if not self.values:
            return None
        ordered = sorted(self.values)
        mid = len(ordered) // 2
        if len(ordered) % 2 == 0:
            return (ordered[mid - 1] + ordered[mid]) / 2
        return ordered[mid]

    def mode(self) -> Optional[float]:
        if not self.values:
            return None
        counts: Dict[float, int] = {}
        for value in self.values:
            counts[value] = counts.get(value, 0) + 1
        top = max(counts.values())
        return min(value for value, count in counts.items() if count == top)

    def test_value(self, cut: Union[str, float]) -> Optional[float]:
        if cut == "median":
            return self.median()
        if cut == "mean":
            return self.mean()
        if cut == "mode":
            return self.mode()
        return float(cut)

    def runs_test(self, cut: Union[str, float]) -> Dict[str, Any]:
        """Runs statistics for one cut point (a name or a custom number)."""
        if self.N <= 1:
            return {
                "TestValue": None,
                "CasesBelow": 0,
                "CasesAbove": 0,
                "Total": self.N,
                "Runs": 0,
                "Z": None,
                "PValue": None,
            }

        test_value = self.test_value(cut)
        below = [value < test_value for value in self.values]
        n1 = sum(below)
        n2 = self.N - n1
        runs = 1 + sum(1 for previous, current in zip(below, below[1:]) if previous != current)

        result = {
            "TestValue": test_value,
            "CasesBelow": n1,
            "CasesAbove": n2,
            "Total": self.N,
            "Runs": runs,
            "Z": None,
            "PValue": None,
        }
        if runs == 1:
            self.insufficient_type.append("single custom" if not isinstance(cut, str) else f"single {cut}")
            return result

        N = self.N
        mu = 1 + 2 * n1 * n2 / N
        sigma = math.sqrt(2 * n1 * n2 * (2 * n1 * n2 - N) / (N * N * (N - 1)))
        corrected = runs
        if runs < mu:
            corrected = runs + 0.5
        elif runs > mu:
            corrected = runs - 0.5
        if sigma > 0:
            z = (corrected - mu) / sigma
            result["Z"] = z
            result["PValue"] = min(1.0, max(0.0, 2 * (1 - norm.cdf(abs(z)))))
        return result

    def get_runs_test(self) -> Dict[str, Dict[str, Any]]:
        cut_point = self.options.cut_point
        results = {}
        for name in cut_point.selected():
            cut: Union[str, float] = self.options.custom_value if name == "custom" else name
            results[name] = self.runs_test(cut)
        return results

    def get_output(self) -> Dict[str, Any]:
        runs_test = self.get_runs_test()
        logger.debug(f"Runs test for {self.variable.name}: {runs_test}")
        return {
            "variable1": self.variable.to_payload(),
            "runsTest": runs_test,
            "metadata": {
                "hasInsufficientData": bool(self.insufficient_type),
                "insufficientType": list(self.insufficient_type),
                "variableName": self.variable.name,
                "variableLabel": self.variable.label,
            },
        }
