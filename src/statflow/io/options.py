"""Option files (YAML or JSON) for the command line."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class YamlSupportError(RuntimeError):
    pass


def _require_yaml():
    try:
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - import guard
        raise YamlSupportError(
            "PyYAML is required for YAML option files. Install with `pip install pyyaml`."
        ) from exc
    return yaml


def load_structured(path: Union[str, Path]) -> Any:
    """Load a JSON or YAML document, chosen by suffix."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8") as handle:
        if path.suffix.lower() in YAML_SUFFIXES:
            return _require_yaml().safe_load(handle) or {}
        return json.load(handle)


def load_options(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a procedure's option mapping.

    Keys may be camelCase, as on the wire, or snake_case; each procedure's
    ``from_dict`` accepts both.
    """
    data = load_structured(path)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping of options in {path}, got {type(data).__name__}")
    logger.debug(f"Loaded options from {path}: {sorted(data)}")
    return data
