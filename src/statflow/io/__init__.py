"""Dataset, variable metadata and option file loading."""

from statflow.io.loaders import (
    columns_as_data,
    infer_variable,
    infer_variables,
    load_table,
    load_variable_metadata,
    merge_variables,
)
from statflow.io.options import YamlSupportError, load_options, load_structured

__all__ = [
    "columns_as_data",
    "infer_variable",
    "infer_variables",
    "load_table",
    "load_variable_metadata",
    "merge_variables",
    "YamlSupportError",
    "load_options",
    "load_structured",
]
