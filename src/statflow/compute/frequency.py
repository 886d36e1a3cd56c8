"""Weighted frequency distributions for the Frequencies procedure."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from statflow.compute.descriptive import DescriptiveCalculator
from statflow.compute.preprocess import is_missing, to_numeric, valid_weight
from statflow.formatting import spss_seconds_to_date_string
from statflow.variables import Measure, Variable, core_type, effective_measure, variable_display_name

logger = logging.getLogger(__name__)


class FrequencyCalculator:
    """Frequency table, mode and statistics of one variable.

    Ordinal and scale variables are tabulated numerically (date strings are
    converted to SPSS seconds first); nominal variables are tabulated as
    trimmed strings. Cases with a non-positive weight are ignored entirely.
    """

    def __init__(self, variable: Variable, data: Sequence[Any], weights: Optional[Sequence[Any]] = None):
        self.variable = variable
        self.data = data
        self.weights = weights
        self.measure = effective_measure(variable)
        self.is_date = core_type(variable) == "date"
        self.numeric = self.measure in (Measure.SCALE.value, Measure.ORDINAL.value)
        self._counts: Optional[Dict[Any, float]] = None
        self._total = 0.0
        self._valid_n = 0
        self._numeric_values: List[float] = []
        self._numeric_weights: List[float] = []

    def _tabulate(self) -> Dict[Any, float]:
        if self._counts is not None:
            return self._counts
        counts: Dict[Any, float] = {}
        for index, raw in enumerate(self.data):
            weight = valid_weight(self.weights, index)
            if weight is None:
                continue
            self._total += weight

            if self.numeric:
                if is_missing(raw, self.variable.missing, numeric=True):
                    continue
                value = to_numeric(raw)
                if value is None:
                    continue
                self._numeric_values.append(value)
                self._numeric_weights.append(weight)
            else:
                if raw is None:
                    continue
                value = str(raw).strip()
                if not value or is_missing(value, self.variable.missing, numeric=False):
                    continue

            counts[value] = counts.get(value, 0.0) + weight
            self._valid_n += 1

        self._counts = counts
        return counts

    def _display(self, value: Any) -> Any:
        if self.is_date and isinstance(value, float):
            return spss_seconds_to_date_string(value) or value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    def sorted_values(self) -> List[Any]:
        counts = self._tabulate()
        return sorted(counts)

    @property
    def valid_weight(self) -> float:
        return float(sum(self._tabulate().values()))

    @property
    def total_weight(self) -> float:
        self._tabulate()
        return self._total

    def modes(self) -> List[Any]:
        """Every value sharing the highest frequency, ascending."""
        counts = self._tabulate()
        if not counts:
            return []
        top = max(counts.values())
        return [self._display(value) for value in self.sorted_values() if counts[value] == top]

    def frequency_table(self) -> Dict[str, Any]:
        counts = self._tabulate()
        W = self.valid_weight
        T = self.total_weight or W
        rows = []
        cumulative = 0.0
        for value in self.sorted_values():
            frequency = counts[value]
            cumulative += frequency
            rows.append(
                {
                    "label": self._display(value),
                    "frequency": frequency,
                    "percent": frequency / T * 100 if T > 0 else 0,
                    "validPercent": frequency / W * 100 if W > 0 else 0,
                    "cumulativePercent": cumulative / W * 100 if W > 0 else 0,
                }
            )
        return {
            "title": variable_display_name(self.variable),
            "rows": rows,
            "summary": {"valid": W, "missing": T - W, "total": T},
        }

    def statistics(self, keys: Sequence[str], levels: Sequence[float], method: str = "waverage") -> Dict[str, Any]:
        """Statistics for the Statistics table.

        N, Missing and Mode are always present; numeric statistics are only
        computed for ordinal and scale variables.
        """
        self._tabulate()
        stats: Dict[str, Any] = {}
        if self.numeric and self._numeric_values:
            calculator = DescriptiveCalculator(self._numeric_values, self._numeric_weights, self.total_weight)
            stats.update(calculator.statistics(keys, method))
            if levels:
                stats["Percentiles"] = {
                    _level_key(level): calculator.percentile(level, method) for level in levels
                }
        elif self.numeric:
            stats.update({key: None for key in keys if key not in ("Mode", "Percentiles")})
        stats["N"] = self.valid_weight
        stats["Missing"] = self.total_weight - self.valid_weight
        stats["Mode"] = self.modes()
        return stats


def _level_key(level: float) -> str:
    level = float(level)
    return str(int(level)) if level.is_integer() else str(level)
