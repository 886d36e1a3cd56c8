"""Variable descriptors and measurement-level classification.

Table builders never look at ``Variable.measure`` directly: they go through
:func:`effective_measure` so that ``unknown`` is resolved first, and through
:func:`allows_stat` to decide whether a statistic may be shown at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VariableType(str, Enum):
    """Storage/display types a variable can have."""

    NUMERIC = "NUMERIC"
    STRING = "STRING"
    DATE = "DATE"
    ADATE = "ADATE"
    EDATE = "EDATE"
    SDATE = "SDATE"
    JDATE = "JDATE"
    QYR = "QYR"
    MOYR = "MOYR"
    WKYR = "WKYR"
    DATETIME = "DATETIME"
    TIME = "TIME"
    DTIME = "DTIME"
    COMMA = "COMMA"
    DOT = "DOT"
    DOLLAR = "DOLLAR"
    SCIENTIFIC = "SCIENTIFIC"
    CCA = "CCA"
    CCB = "CCB"
    CCC = "CCC"
    CCD = "CCD"
    CCE = "CCE"
    RESTRICTED_NUMERIC = "RESTRICTED_NUMERIC"


class Measure(str, Enum):
    """Measurement level."""

    NOMINAL = "nominal"
    ORDINAL = "ordinal"
    SCALE = "scale"
    UNKNOWN = "unknown"


DATE_TYPES = frozenset(
    {
        VariableType.DATE.value,
        VariableType.ADATE.value,
        VariableType.EDATE.value,
        VariableType.SDATE.value,
        VariableType.JDATE.value,
        VariableType.QYR.value,
        VariableType.MOYR.value,
        VariableType.WKYR.value,
        VariableType.DATETIME.value,
        VariableType.TIME.value,
        VariableType.DTIME.value,
    }
)

# Statistics that need at least an ordinal variable
ORDERED_STATS = frozenset({"Median", "Range", "Minimum", "Maximum", "Percentiles"})
# Moment-based statistics; shown for ordinal variables but flagged with a caution
MOMENT_STATS = frozenset(
    {"Mean", "SEMean", "StdDev", "Variance", "Skewness", "SESkewness", "Kurtosis", "SEKurtosis"}
)
SCALE_ONLY_STATS = frozenset({"Sum"})
ALWAYS_ALLOWED_STATS = frozenset({"N", "Missing", "Mode"})


class ValueLabel(BaseModel):
    """A labelled value of a categorical variable."""

    value: Any
    label: str = ""


class MissingRange(BaseModel):
    min: float
    max: float


class MissingDefinition(BaseModel):
    """User-missing values: discrete codes and/or a numeric range."""

    discrete: list[Any] = Field(default_factory=list)
    range: Optional[MissingRange] = None


class Variable(BaseModel):
    """Read-only column descriptor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    label: str = ""
    column_index: int = Field(default=0, alias="columnIndex")
    type: str = VariableType.NUMERIC.value
    measure: str = Measure.UNKNOWN.value
    decimals: int = 0
    temp_id: Optional[str] = Field(default=None, alias="tempId")
    values: list[ValueLabel] = Field(default_factory=list)
    missing: Optional[MissingDefinition] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value):
        if isinstance(value, Enum):
            value = value.value
        return str(value).upper() if value else VariableType.NUMERIC.value

    @field_validator("measure", mode="before")
    @classmethod
    def _normalise_measure(cls, value):
        if isinstance(value, Enum):
            value = value.value
        return str(value).lower() if value else Measure.UNKNOWN.value

    @field_validator("label", mode="before")
    @classmethod
    def _normalise_label(cls, value):
        return "" if value is None else str(value)

    @field_validator("decimals", mode="before")
    @classmethod
    def _normalise_decimals(cls, value):
        return 0 if value is None else value

    def to_payload(self) -> dict[str, Any]:
        """Wire representation (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


def core_type(variable: Variable) -> str:
    """Collapse a variable type to ``string``, ``date`` or ``numeric``."""
    if variable.type == VariableType.STRING.value:
        return "string"
    if variable.type in DATE_TYPES:
        return "date"
    return "numeric"


def is_date_variable(variable: Variable) -> bool:
    return variable.type in DATE_TYPES


def effective_measure(variable: Variable) -> str:
    """Resolve ``unknown`` to scale (numeric/date) or nominal (string)."""
    measure = variable.measure or Measure.UNKNOWN.value
    if measure != Measure.UNKNOWN.value:
        return measure
    if core_type(variable) == "string":
        return Measure.NOMINAL.value
    return Measure.SCALE.value


def allows_stat(variable: Variable, stat_key: str) -> bool:
    """Whether ``stat_key`` may be displayed for ``variable``.

    Unrecognised keys are allowed.
    """
    if stat_key in ALWAYS_ALLOWED_STATS:
        return True
    measure = effective_measure(variable)
    if stat_key in SCALE_ONLY_STATS:
        return measure == Measure.SCALE.value
    if stat_key in ORDERED_STATS or stat_key in MOMENT_STATS:
        return measure in (Measure.ORDINAL.value, Measure.SCALE.value)
    return True


def variable_display_name(variable: Optional[Variable], fallback: str = "Unknown") -> str:
    """Label when set, otherwise the name."""
    if variable is None:
        return fallback
    return variable.label or variable.name or fallback


def value_label(variable: Optional[Variable], value) -> str:
    """Value label for ``value`` if the variable defines one, else ``str(value)``."""
    if variable is not None:
        for item in variable.values:
            if item.label and _same_value(item.value, value):
                return item.label
    return str(value)


def _same_value(left, right) -> bool:
    if left == right or str(left) == str(right):
        return True
    try:
        return float(left) == float(right)
    except (TypeError, ValueError):
        return False
