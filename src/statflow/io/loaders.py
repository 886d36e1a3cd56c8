"""Loading datasets and variable definitions from disk.

CSV and Parquet files are read with pandas; variables are inferred from
column dtypes unless a metadata file describes them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from statflow.io.options import load_structured
from statflow.variables import Measure, Variable, VariableType

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d-%m-%Y"
MAX_INFERRED_DECIMALS = 6

# Flag to track PyArrow availability
_PYARROW_AVAILABLE: Optional[bool] = None


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed with helpful installation message
    """
    global _PYARROW_AVAILABLE

    if _PYARROW_AVAILABLE is None:
        try:
            import pyarrow  # noqa: F401

            _PYARROW_AVAILABLE = True
        except ImportError:
            _PYARROW_AVAILABLE = False

    if not _PYARROW_AVAILABLE:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install statflow[parquet] or pip install pyarrow"
        )


def load_table(path: Union[str, Path], columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Load a table from a CSV or Parquet file.

    Parameters
    ----------
    path : Path
        Path to data file
    columns : List[str], optional
        Subset of columns to load

    Returns
    -------
    pd.DataFrame
        Loaded data

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the format cannot be inferred from the suffix
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    suffix = path.suffix.lower()
    logger.info(f"Loading table from {path}")

    if suffix == ".csv":
        kwargs = {}
        if columns is not None:
            kwargs["usecols"] = columns
        return pd.read_csv(path, **kwargs)
    if suffix in (".parquet", ".pq"):
        validate_parquet_available()
        import pyarrow.parquet as pq

        return pq.read_table(path, columns=columns).to_pandas()
    raise ValueError(f"Cannot infer data format from suffix '{suffix}' (expected .csv or .parquet)")


def _inferred_decimals(series: pd.Series) -> int:
    values = series.dropna().to_numpy(dtype=float)
    if values.size == 0:
        return 0
    for decimals in range(MAX_INFERRED_DECIMALS + 1):
        if np.allclose(values, np.round(values, decimals)):
            return decimals
    return MAX_INFERRED_DECIMALS


def infer_variable(series: pd.Series, column_index: int) -> Variable:
    """Build a :class:`Variable` from a column's dtype.

    Object columns become nominal strings, datetimes become ``DATE`` and
    numeric columns become scale. No column is inferred as ordinal.
    """
    name = str(series.name)
    if pd.api.types.is_datetime64_any_dtype(series):
        return Variable(name=name, column_index=column_index, type=VariableType.DATE, measure=Measure.SCALE)
    if pd.api.types.is_bool_dtype(series):
        return Variable(name=name, column_index=column_index, type=VariableType.NUMERIC, measure=Measure.NOMINAL)
    if pd.api.types.is_numeric_dtype(series):
        return Variable(
            name=name,
            column_index=column_index,
            type=VariableType.NUMERIC,
            measure=Measure.SCALE,
            decimals=_inferred_decimals(series),
        )
    return Variable(name=name, column_index=column_index, type=VariableType.STRING, measure=Measure.NOMINAL)


def infer_variables(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> List[Variable]:
    """Infer variables for ``columns`` (all columns when omitted), in that order."""
    names = list(columns) if columns else [str(name) for name in df.columns]
    missing = [name for name in names if name not in df.columns]
    if missing:
        raise ValueError(f"Columns not found in data: {', '.join(missing)}")
    return [infer_variable(df[name], list(df.columns).index(name)) for name in names]


def _cell(value: Any) -> Any:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, np.generic):
        return value.item()
    return value


def columns_as_data(df: pd.DataFrame, variables: Sequence[Variable]) -> Dict[str, List[Any]]:
    """Column data keyed by variable name; NaN becomes ``None`` and dates ``dd-mm-yyyy``."""
    return {variable.name: [_cell(value) for value in df[variable.name].tolist()] for variable in variables}


def load_variable_metadata(path: Union[str, Path]) -> List[Variable]:
    """Load variable definitions from a JSON or YAML file.

    The file holds either a list of variable dicts or ``{"variables": [...]}``;
    keys may be camelCase (``columnIndex``) or snake_case.
    """
    raw = load_structured(path)
    if isinstance(raw, dict):
        raw = raw.get("variables", [])
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of variables in {path}")
    variables = [Variable.model_validate(item) for item in raw]
    logger.info(f"Loaded {len(variables)} variable definition(s) from {path}")
    return variables


def merge_variables(inferred: Sequence[Variable], declared: Sequence[Variable]) -> List[Variable]:
    """Declared definitions override inferred ones with the same name."""
    by_name = {variable.name: variable for variable in declared}
    return [by_name.get(variable.name, variable) for variable in inferred]
