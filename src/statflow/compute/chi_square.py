"""Chi-Square goodness-of-fit test for one variable."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from scipy import stats as scipy_stats

from statflow.compute.descriptive import DescriptiveCalculator
from statflow.compute.preprocess import is_missing, to_numeric
from statflow.config import ChiSquareOptions, DisplayStatisticsOptions
from statflow.variables import Variable

logger = logging.getLogger(__name__)


def descriptive_block(variable: Variable, values: Sequence[float], display: DisplayStatisticsOptions) -> Dict[str, Any]:
    """``N1``/``Mean1``/... block shared by Chi-Square and Runs results."""
    calculator = DescriptiveCalculator(values)
    block: Dict[str, Any] = {"variable1": variable.to_payload(), "N1": len(values)}
    if display.descriptive:
        block.update(
            {
                "Mean1": calculator.mean(),
                "StdDev1": calculator.std_dev(),
                "Min1": calculator.minimum(),
                "Max1": calculator.maximum(),
            }
        )
    if display.quartiles:
        for level in (25, 50, 75):
            block[f"Percentile{level}_1"] = calculator.percentile(level, "haverage")
    return block


class ChiSquareCalculator:
    """Observed against expected frequencies of one variable's categories.

    Categories come from the data, or from an integer range when a specified
    range is used (values outside the range are ignored). Expected counts are
    equal across categories or proportional to the user's expected values.
    """

    def __init__(self, variable: Variable, data: Sequence[Any], options: Optional[ChiSquareOptions] = None):
        self.variable = variable
        self.data = data
        self.options = options or ChiSquareOptions()
        self.insufficient_type: List[str] = []
        self.values = [
            number
            for number in (
                to_numeric(raw) for raw in data if not is_missing(raw, variable.missing, numeric=True)
            )
            if number is not None
        ]

    def _bounds(self):
        expected_range = self.options.expected_range
        lower, upper = expected_range.lower_value, expected_range.upper_value
        if lower is None and self.values:
            lower = min(self.values)
        if upper is None and self.values:
            upper = max(self.values)
        return lower, upper

    def categories(self) -> List[float]:
        if not self.options.expected_range.use_specified_range:
            return sorted(set(self.values))
        lower, upper = self._bounds()
        if lower is None or upper is None:
            return []
        return [float(value) for value in range(math.ceil(lower), math.floor(upper) + 1)]

    def frequencies(self) -> Dict[str, Any]:
        categories = self.categories()
        counts = {category: 0 for category in categories}
        for value in self.values:
            if value in counts:
                counts[value] += 1
        observed = [counts[category] for category in categories]
        N = sum(observed)

        expected_value = self.options.expected_value
        if expected_value.all_categories_equal or not expected_value.values:
            expected: Any = N / len(categories) if categories else 0
            expected_list = [expected] * len(categories)
        else:
            if len(expected_value.values) != len(categories):
                raise ValueError(
                    f"Number of expected values ({len(expected_value.values)}) does not match "
                    f"the number of categories ({len(categories)})"
                )
            total = sum(expected_value.values)
            expected_list = [N * value / total for value in expected_value.values]
            expected = expected_list

        return {
            "categoryList": [_category(value) for value in categories],
            "observedN": observed,
            "expectedN": expected,
            "residual": [obs - exp for obs, exp in zip(observed, expected_list)],
            "N": N,
            "_expected": expected_list,
        }

    def test_statistics(self, frequencies: Dict[str, Any]) -> Dict[str, Optional[float]]:
        observed = frequencies["observedN"]
        if frequencies["N"] == 0 or len(observed) < 2:
            return {"ChiSquare": None, "DF": None, "PValue": None}
        result = scipy_stats.chisquare(observed, f_exp=frequencies["_expected"])
        return {
            "ChiSquare": float(result.statistic),
            "DF": len(observed) - 1,
            "PValue": float(result.pvalue),
        }

    def get_output(self) -> Dict[str, Any]:
        frequencies = self.frequencies()
        if frequencies["N"] == 0:
            self.insufficient_type.append("empty")
        elif len(frequencies["categoryList"]) < 2:
            self.insufficient_type.append("single category")
        test_statistics = self.test_statistics(frequencies)
        frequencies.pop("_expected")
        output = {
            "variable1": self.variable.to_payload(),
            "frequencies": frequencies,
            "testStatistics": test_statistics,
            "metadata": {
                "hasInsufficientData": bool(self.insufficient_type),
                "insufficientType": list(self.insufficient_type),
                "variableName": self.variable.name,
                "variableLabel": self.variable.label,
            },
        }
        logger.debug(f"Chi-Square for {self.variable.name}: {test_statistics}")
        return output


def _category(value: float) -> Any:
    return int(value) if float(value).is_integer() else value
