"""Pydantic models for computation-unit messages and persisted result entries."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from statflow.variables import Variable


class Components(str, Enum):
    """Kinds of statistic entries."""

    TABLE = "table"
    CHART = "chart"


# ---------------------------------------------------------------------------
# Computation unit responses
# ---------------------------------------------------------------------------


class FrequenciesResults(BaseModel):
    """Batched Frequencies output keyed by variable name."""

    model_config = ConfigDict(populate_by_name=True)

    statistics: dict[str, dict[str, Any]] = Field(default_factory=dict)
    frequency_tables: dict[str, dict[str, Any]] = Field(
        default_factory=dict, alias="frequencyTables"
    )


class FrequenciesResponse(BaseModel):
    success: bool
    results: Optional[FrequenciesResults] = None
    error: Optional[str] = None


class VariableStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class VariableResponse(BaseModel):
    """Per-variable Chi-Square / Runs output."""

    model_config = ConfigDict(populate_by_name=True)

    variable_name: str = Field(alias="variableName")
    status: VariableStatus
    results: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class ResultMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_insufficient_data: bool = Field(default=False, alias="hasInsufficientData")
    insufficient_type: list[str] = Field(default_factory=list, alias="insufficientType")
    variable_name: Optional[str] = Field(default=None, alias="variableName")
    variable_label: Optional[str] = Field(default=None, alias="variableLabel")


def as_variable(value: Any) -> Optional[Variable]:
    """Accept a ``Variable`` or its wire dict."""
    if value is None or isinstance(value, Variable):
        return value
    return Variable.model_validate(value)


def metadata_of(result: Optional[dict[str, Any]]) -> ResultMetadata:
    """Metadata block of a per-variable result (defaults when absent)."""
    raw = (result or {}).get("metadata") or {}
    return ResultMetadata.model_validate(raw)


# ---------------------------------------------------------------------------
# Persistence entries
# ---------------------------------------------------------------------------


class LogEntry(BaseModel):
    log: str


class AnalyticEntry(BaseModel):
    title: str
    note: Optional[str] = None


class StatisticEntry(BaseModel):
    """One table or chart attached to an analytic."""

    title: str
    output_data: str = Field(..., description="JSON document {'tables': [...]} or chart payload")
    components: str = Components.TABLE.value
    description: str = ""

    @classmethod
    def for_tables(cls, title: str, tables: list[dict[str, Any]], description: str = "") -> StatisticEntry:
        return cls(
            title=title,
            output_data=json.dumps({"tables": tables}),
            components=Components.TABLE.value,
            description=description,
        )

    @classmethod
    def for_chart(cls, title: str, chart: dict[str, Any], description: str = "") -> StatisticEntry:
        return cls(
            title=title,
            output_data=json.dumps({"charts": [chart]}),
            components=Components.CHART.value,
            description=description,
        )
