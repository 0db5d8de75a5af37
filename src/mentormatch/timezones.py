"""Resolution of free-form timezone labels to UTC offsets."""

from __future__ import annotations

import re
from typing import Dict, Optional

# Labels offered by the intake survey.
NAMED_OFFSETS: Dict[str, float] = {
    "central europe (cet)": 1,
    "uk / ireland (gmt)": 0,
    "us – pacific time (pst)": -8,
    "us - pacific time (pst)": -8,
    "us – central time (cst)": -6,
    "us - central time (cst)": -6,
    "us – eastern time (est)": -5,
    "us - eastern time (est)": -5,
    "australia (aest)": 10,
}

_OFFSET_PATTERN = re.compile(
    r"^(?:utc|gmt)?\s*(?P<sign>[+-])\s*(?P<hours>\d{1,2})(?:(?::(?P<minutes>\d{2}))|(?P<fraction>\.\d+))?$"
)


def resolve_offset(label: Optional[str]) -> Optional[float]:
    """Return the UTC offset in hours for ``label``, or ``None`` when unknown.

    Accepts ``+2``, ``-5.5``, ``UTC+2``, ``GMT-03:30``, bare ``UTC``/``GMT``
    and the survey's named labels.
    """

    if not label:
        return None
    key = label.strip().lower()
    if key in NAMED_OFFSETS:
        return float(NAMED_OFFSETS[key])
    if key in {"utc", "gmt", "0"}:
        return 0.0
    match = _OFFSET_PATTERN.match(key)
    if not match:
        return None
    offset = float(match.group("hours"))
    if match.group("minutes"):
        offset += int(match.group("minutes")) / 60
    elif match.group("fraction"):
        offset += float(match.group("fraction"))
    return -offset if match.group("sign") == "-" else offset


def timezone_distance(first: Optional[str], second: Optional[str]) -> Optional[float]:
    """Absolute offset difference in hours, ``None`` if either side is unknown."""

    first_offset = resolve_offset(first)
    second_offset = resolve_offset(second)
    if first_offset is None or second_offset is None:
        return None
    return abs(first_offset - second_offset)


__all__ = ["NAMED_OFFSETS", "resolve_offset", "timezone_distance"]
