"""Option value types, analysis requests and runtime settings.

Options are immutable values built from the current UI (or CLI) state. Use
``dataclasses.replace`` to derive a changed copy; nothing mutates them in
place. ``to_payload`` produces the camelCase structure sent to computation
units and ``from_dict`` accepts either camelCase or snake_case keys.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from statflow.variables import Variable

logger = logging.getLogger(__name__)


class AnalysisValidationError(ValueError):
    """Raised when a request cannot be dispatched; the message is user-facing."""


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    if camel in data:
        return data[camel]
    return default


# ---------------------------------------------------------------------------
# Frequencies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PercentileOptions:
    """Percentile levels requested for the Statistics table.

    Attributes:
        quartiles: Include the 25th, 50th and 75th percentiles
        cut_points: Include cut points for ``cut_points_n`` equal groups
        cut_points_n: Number of equal groups (needs >= 2)
        custom: Explicit percentile levels in (0, 100)
    """

    quartiles: bool = False
    cut_points: bool = False
    cut_points_n: int = 10
    custom: Tuple[float, ...] = ()

    def __post_init__(self):
        if self.cut_points and self.cut_points_n < 2:
            raise AnalysisValidationError("Cut points must divide the data into at least 2 groups.")
        for level in self.custom:
            if not 0 < float(level) < 100:
                raise AnalysisValidationError(f"Percentile values must lie between 0 and 100, got {level}.")

    @property
    def enabled(self) -> bool:
        return self.quartiles or self.cut_points or bool(self.custom)

    def levels(self) -> List[float]:
        """Sorted, de-duplicated percentile levels."""
        levels = set()
        if self.quartiles:
            levels.update((25.0, 50.0, 75.0))
        if self.cut_points and self.cut_points_n > 1:
            levels.update(100.0 * i / self.cut_points_n for i in range(1, self.cut_points_n))
        levels.update(float(level) for level in self.custom)
        return sorted(levels)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "enablePercentiles": self.enabled,
            "quartiles": self.quartiles,
            "cutPoints": self.cut_points,
            "cutPointsN": self.cut_points_n,
            "percentilesList": [str(level) for level in self.custom],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PercentileOptions":
        custom = _pick(data, "custom", "percentilesList", ()) or ()
        return cls(
            quartiles=bool(data.get("quartiles", False)),
            cut_points=bool(_pick(data, "cut_points", "cutPoints", False)),
            cut_points_n=int(_pick(data, "cut_points_n", "cutPointsN", 10)),
            custom=tuple(float(level) for level in custom),
        )


@dataclass(frozen=True)
class CentralTendencyOptions:
    mean: bool = False
    median: bool = False
    mode: bool = False
    sum: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {"mean": self.mean, "median": self.median, "mode": self.mode, "sum": self.sum}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CentralTendencyOptions":
        return cls(**{key: bool(data.get(key, False)) for key in ("mean", "median", "mode", "sum")})


@dataclass(frozen=True)
class DispersionOptions:
    std_deviation: bool = False
    variance: bool = False
    range: bool = False
    minimum: bool = False
    maximum: bool = False
    std_error_mean: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "stddev": self.std_deviation,
            "variance": self.variance,
            "range": self.range,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "stdErrorMean": self.std_error_mean,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DispersionOptions":
        return cls(
            std_deviation=bool(_pick(data, "std_deviation", "stddev", False)),
            variance=bool(data.get("variance", False)),
            range=bool(data.get("range", False)),
            minimum=bool(data.get("minimum", False)),
            maximum=bool(data.get("maximum", False)),
            std_error_mean=bool(_pick(data, "std_error_mean", "stdErrorMean", False)),
        )


@dataclass(frozen=True)
class DistributionOptions:
    skewness: bool = False
    std_error_skewness: bool = False
    kurtosis: bool = False
    std_error_kurtosis: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "skewness": self.skewness,
            "stdErrorSkewness": self.std_error_skewness,
            "kurtosis": self.kurtosis,
            "stdErrorKurtosis": self.std_error_kurtosis,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DistributionOptions":
        return cls(
            skewness=bool(data.get("skewness", False)),
            std_error_skewness=bool(_pick(data, "std_error_skewness", "stdErrorSkewness", False)),
            kurtosis=bool(data.get("kurtosis", False)),
            std_error_kurtosis=bool(_pick(data, "std_error_kurtosis", "stdErrorKurtosis", False)),
        )


@dataclass(frozen=True)
class StatisticsOptions:
    """Which statistics the Frequencies procedure computes."""

    percentiles: PercentileOptions = field(default_factory=PercentileOptions)
    central_tendency: CentralTendencyOptions = field(default_factory=CentralTendencyOptions)
    dispersion: DispersionOptions = field(default_factory=DispersionOptions)
    distribution: DistributionOptions = field(default_factory=DistributionOptions)

    def requested_stats(self) -> List[str]:
        """Result keys (``Mean``, ``StdDev``, ...) the options ask for."""
        flags = [
            ("Mean", self.central_tendency.mean),
            ("SEMean", self.dispersion.std_error_mean),
            ("Median", self.central_tendency.median),
            ("Mode", self.central_tendency.mode),
            ("StdDev", self.dispersion.std_deviation),
            ("Variance", self.dispersion.variance),
            ("Skewness", self.distribution.skewness),
            ("SESkewness", self.distribution.std_error_skewness),
            ("Kurtosis", self.distribution.kurtosis),
            ("SEKurtosis", self.distribution.std_error_kurtosis),
            ("Range", self.dispersion.range),
            ("Minimum", self.dispersion.minimum),
            ("Maximum", self.dispersion.maximum),
            ("Sum", self.central_tendency.sum),
        ]
        requested = [key for key, enabled in flags if enabled]
        if self.percentiles.enabled:
            requested.append("Percentiles")
        return requested

    def to_payload(self) -> Dict[str, Any]:
        return {
            "percentileValues": self.percentiles.to_payload(),
            "centralTendency": self.central_tendency.to_payload(),
            "dispersion": self.dispersion.to_payload(),
            "distribution": self.distribution.to_payload(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StatisticsOptions":
        return cls(
            percentiles=PercentileOptions.from_dict(
                _pick(data, "percentiles", "percentileValues", {}) or {}
            ),
            central_tendency=CentralTendencyOptions.from_dict(
                _pick(data, "central_tendency", "centralTendency", {}) or {}
            ),
            dispersion=DispersionOptions.from_dict(data.get("dispersion", {}) or {}),
            distribution=DistributionOptions.from_dict(data.get("distribution", {}) or {}),
        )


CHART_TYPES = ("none", "bar", "pie", "histogram")
CHART_VALUES = ("frequencies", "percentages")


@dataclass(frozen=True)
class ChartOptions:
    """Chart payloads produced alongside frequency tables."""

    chart_type: str = "none"
    values: str = "frequencies"
    show_normal_curve: bool = False

    def __post_init__(self):
        if self.chart_type not in CHART_TYPES:
            raise AnalysisValidationError(f"chart_type must be one of {CHART_TYPES}, got {self.chart_type}")
        if self.values not in CHART_VALUES:
            raise AnalysisValidationError(f"values must be one of {CHART_VALUES}, got {self.values}")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_type,
            "chartValues": self.values,
            "showNormalCurve": self.show_normal_curve,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChartOptions":
        return cls(
            chart_type=str(_pick(data, "chart_type", "chartType", "none") or "none"),
            values=str(_pick(data, "values", "chartValues", "frequencies") or "frequencies"),
            show_normal_curve=bool(_pick(data, "show_normal_curve", "showNormalCurve", False)),
        )


# ---------------------------------------------------------------------------
# Chi-Square / Runs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisplayStatisticsOptions:
    descriptive: bool = False
    quartiles: bool = False

    @property
    def any(self) -> bool:
        return self.descriptive or self.quartiles

    def to_payload(self) -> Dict[str, Any]:
        return {"descriptive": self.descriptive, "quartiles": self.quartiles}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DisplayStatisticsOptions":
        return cls(
            descriptive=bool(data.get("descriptive", False)),
            quartiles=bool(data.get("quartiles", False)),
        )


@dataclass(frozen=True)
class ExpectedRange:
    """Category universe for the Chi-Square test.

    With ``use_specified_range`` unset, categories come from the data.
    """

    use_specified_range: bool = False
    lower_value: Optional[float] = None
    upper_value: Optional[float] = None

    def validate(self) -> None:
        if not self.use_specified_range:
            return
        if self.lower_value is None and self.upper_value is None:
            raise AnalysisValidationError("Please specify a lower or upper value for the expected range.")
        if (
            self.lower_value is not None
            and self.upper_value is not None
            and self.lower_value > self.upper_value
        ):
            raise AnalysisValidationError("Lower value must not exceed upper value.")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "getFromData": not self.use_specified_range,
            "useSpecifiedRange": self.use_specified_range,
            "lowerValue": self.lower_value,
            "upperValue": self.upper_value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpectedRange":
        lower = _pick(data, "lower_value", "lowerValue")
        upper = _pick(data, "upper_value", "upperValue")
        return cls(
            use_specified_range=bool(_pick(data, "use_specified_range", "useSpecifiedRange", False)),
            lower_value=None if lower is None else float(lower),
            upper_value=None if upper is None else float(upper),
        )


@dataclass(frozen=True)
class ExpectedValue:
    """Expected frequencies: all equal, or one relative value per category."""

    all_categories_equal: bool = True
    values: Tuple[float, ...] = ()

    def validate(self) -> None:
        if not self.all_categories_equal and not self.values:
            raise AnalysisValidationError("Please enter at least one expected value.")
        if any(value <= 0 for value in self.values):
            raise AnalysisValidationError("Expected values must be greater than 0.")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "allCategoriesEqual": self.all_categories_equal,
            "values": not self.all_categories_equal,
            "inputList": list(self.values),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpectedValue":
        values = _pick(data, "values_list", "inputList")
        if values is None and isinstance(data.get("values"), (list, tuple)):
            values = data["values"]
        return cls(
            all_categories_equal=bool(_pick(data, "all_categories_equal", "allCategoriesEqual", True)),
            values=tuple(float(value) for value in (values or ())),
        )


@dataclass(frozen=True)
class ChiSquareOptions:
    expected_range: ExpectedRange = field(default_factory=ExpectedRange)
    expected_value: ExpectedValue = field(default_factory=ExpectedValue)
    display_statistics: DisplayStatisticsOptions = field(default_factory=DisplayStatisticsOptions)

    def validate(self) -> None:
        self.expected_range.validate()
        self.expected_value.validate()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "expectedRange": self.expected_range.to_payload(),
            "expectedValue": self.expected_value.to_payload(),
            "displayStatistics": self.display_statistics.to_payload(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChiSquareOptions":
        return cls(
            expected_range=ExpectedRange.from_dict(_pick(data, "expected_range", "expectedRange", {}) or {}),
            expected_value=ExpectedValue.from_dict(_pick(data, "expected_value", "expectedValue", {}) or {}),
            display_statistics=DisplayStatisticsOptions.from_dict(
                _pick(data, "display_statistics", "displayStatistics", {}) or {}
            ),
        )


CUT_POINT_TYPES = ("median", "mean", "mode", "custom")


@dataclass(frozen=True)
class CutPoint:
    median: bool = True
    mean: bool = False
    mode: bool = False
    custom: bool = False

    def selected(self) -> List[str]:
        return [name for name in CUT_POINT_TYPES if getattr(self, name)]

    def to_payload(self) -> Dict[str, Any]:
        return {"median": self.median, "mode": self.mode, "mean": self.mean, "custom": self.custom}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CutPoint":
        return cls(**{name: bool(data.get(name, False)) for name in CUT_POINT_TYPES})


@dataclass(frozen=True)
class RunsOptions:
    cut_point: CutPoint = field(default_factory=CutPoint)
    custom_value: Optional[float] = None
    display_statistics: DisplayStatisticsOptions = field(default_factory=DisplayStatisticsOptions)

    def validate(self) -> None:
        if not self.cut_point.selected():
            raise AnalysisValidationError("Please select at least one cut point.")
        if self.cut_point.custom and self.custom_value is None:
            raise AnalysisValidationError("Please enter a custom cut point value.")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "cutPoint": self.cut_point.to_payload(),
            "customValue": self.custom_value,
            "displayStatistics": self.display_statistics.to_payload(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunsOptions":
        custom_value = _pick(data, "custom_value", "customValue")
        return cls(
            cut_point=CutPoint.from_dict(_pick(data, "cut_point", "cutPoint", {}) or {}),
            custom_value=None if custom_value is None else float(custom_value),
            display_statistics=DisplayStatisticsOptions.from_dict(
                _pick(data, "display_statistics", "displayStatistics", {}) or {}
            ),
        )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

ColumnData = Mapping[str, Sequence[Any]]


def _require_variables(variables: Sequence[Variable]) -> None:
    if not variables:
        raise AnalysisValidationError("Please select at least one variable.")


def column_for(data: ColumnData, variable: Variable) -> List[Any]:
    """Raw column for ``variable``."""
    if variable.name in data:
        return list(data[variable.name])
    raise AnalysisValidationError(f"No data available for variable '{variable.name}'.")


@dataclass(frozen=True)
class FrequenciesRequest:
    variables: Tuple[Variable, ...]
    data: ColumnData
    weights: Optional[Sequence[Any]] = None
    show_frequency_tables: bool = True
    show_statistics: bool = False
    statistics_options: Optional[StatisticsOptions] = None
    show_charts: bool = False
    chart_options: Optional[ChartOptions] = None

    def validate(self) -> None:
        _require_variables(self.variables)
        wants_statistics = self.show_statistics and self.statistics_options is not None
        if not self.show_frequency_tables and not wants_statistics:
            raise AnalysisValidationError(
                "Please select at least one analysis option (Frequency Tables or Statistics)."
            )


@dataclass(frozen=True)
class ChiSquareRequest:
    variables: Tuple[Variable, ...]
    data: ColumnData
    options: ChiSquareOptions = field(default_factory=ChiSquareOptions)

    def validate(self) -> None:
        _require_variables(self.variables)
        self.options.validate()


@dataclass(frozen=True)
class RunsRequest:
    variables: Tuple[Variable, ...]
    data: ColumnData
    options: RunsOptions = field(default_factory=RunsOptions)

    def validate(self) -> None:
        _require_variables(self.variables)
        self.options.validate()


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------

EXECUTOR_KINDS = ("thread", "process")


@dataclass
class AnalysisSettings:
    """Runtime settings for computation units.

    Attributes:
        timeout_seconds: Per-unit time budget; the run budget scales with the
            number of units (None disables the timeout)
        executor: ``thread`` or ``process`` pool for computation units
        max_workers: Pool size
    """

    timeout_seconds: Optional[float] = 60.0
    executor: str = "thread"
    max_workers: int = 4

    def __post_init__(self):
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.executor not in EXECUTOR_KINDS:
            raise ValueError(f"executor must be one of {EXECUTOR_KINDS}, got {self.executor}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls) -> AnalysisSettings:
        """Create settings from environment variables."""
        config = cls()

        if timeout := os.environ.get("STATFLOW_TIMEOUT_SECONDS"):
            try:
                value = float(timeout)
                config.timeout_seconds = value if value > 0 else None
            except ValueError:
                logger.warning("Ignoring invalid STATFLOW_TIMEOUT_SECONDS=%r", timeout)

        if executor := os.environ.get("STATFLOW_EXECUTOR"):
            if executor.lower() in EXECUTOR_KINDS:
                config.executor = executor.lower()
            else:
                logger.warning("Ignoring invalid STATFLOW_EXECUTOR=%r", executor)

        if max_workers := os.environ.get("STATFLOW_MAX_WORKERS"):
            try:
                config.max_workers = max(1, int(max_workers))
            except ValueError:
                logger.warning("Ignoring invalid STATFLOW_MAX_WORKERS=%r", max_workers)

        return config
