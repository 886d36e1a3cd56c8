"""Conversion between SPSS date values and ``dd-mm-yyyy`` strings.

SPSS stores dates as the number of seconds since the start of the Gregorian
calendar (14 October 1582, 00:00:00).
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta
from typing import Optional

SPSS_EPOCH = datetime(1582, 10, 14)
DATE_FORMAT = "%d-%m-%Y"

_DATE_RE = re.compile(r"^\s*(\d{1,2})-(\d{1,2})-(\d{4})\s*$")


def is_date_string(value) -> bool:
    """Whether ``value`` looks like a ``dd-mm-yyyy`` date."""
    return isinstance(value, str) and _DATE_RE.match(value) is not None


def spss_seconds_to_date_string(seconds, epoch: datetime = SPSS_EPOCH) -> str:
    """Convert SPSS seconds to ``dd-mm-yyyy``.

    Returns an empty string for None, non-numeric or non-finite input and for
    values outside the representable calendar range.
    """
    if seconds is None or isinstance(seconds, bool):
        return ""
    try:
        seconds = float(seconds)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(seconds):
        return ""
    try:
        moment = epoch + timedelta(seconds=seconds)
    except OverflowError:
        return ""
    return f"{moment.day:02d}-{moment.month:02d}-{moment.year:04d}"


def date_string_to_spss_seconds(text, epoch: datetime = SPSS_EPOCH) -> Optional[float]:
    """Convert a ``dd-mm-yyyy`` string to SPSS seconds (None when invalid)."""
    if not isinstance(text, str):
        return None
    match = _DATE_RE.match(text)
    if match is None:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        moment = datetime(year, month, day)
    except ValueError:
        return None
    return (moment - epoch).total_seconds()
