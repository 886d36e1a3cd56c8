"""Shared helpers for the ``FormattedTable`` structure.

A formatted table is a plain JSON-serialisable dict::

    {
        "title": str,
        "columnHeaders": [{"header": str, "key": str, "children"?: [...]}],
        "rows": [{"rowHeader": [...], <key>: value, "children"?: [...]}],
        "footer"?: str,
    }
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

FormattedTable = Dict[str, Any]

ROW_HEADER_KEY = "rowHeader"
NO_DATA_KEY = "noData"


def column(header: str, key: str, children: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    col = {"header": header, "key": key}
    if children is not None:
        col["children"] = children
    return col


def no_data_table(title: str = "") -> FormattedTable:
    """Placeholder table with a single ``No Data`` column and no rows."""
    return {
        "title": title,
        "columnHeaders": [column("No Data", NO_DATA_KEY)],
        "rows": [],
    }


def format_error_table() -> FormattedTable:
    return no_data_table("")


def row_key_for(index: int) -> str:
    return f"var_{index}"
