"""
Timestamps as they appear in shotlists: ``M:SS.ff`` (minutes, seconds, hundredths).

Anything that is not a well-formed timestamp reads as ``0.0``.
"""

import math
import re
from typing import Any

_TIMESTAMP_RE = re.compile(r"^(\d+):(\d+)\.(\d+)$")


def parse_timestamp(text: Any) -> float:
    """``"1:03.90"`` -> ``63.9``. Non-matching input returns ``0.0``."""
    if not isinstance(text, str):
        return 0.0
    match = _TIMESTAMP_RE.match(text.strip())
    if not match:
        return 0.0
    minutes = int(match.group(1))
    seconds = int(match.group(2))
    fraction = int(match.group(3)) / 100
    return minutes * 60 + seconds + fraction


def format_timestamp(seconds: float) -> str:
    """``63.9`` -> ``"1:03.90"``."""
    if not isinstance(seconds, (int, float)) or math.isnan(seconds) or seconds < 0:
        seconds = 0.0
    hundredths = int(round(seconds * 100))
    total_seconds, frac = divmod(hundredths, 100)
    minutes, secs = divmod(total_seconds, 60)
    return f"{minutes}:{secs:02d}.{frac:02d}"


def format_duration(seconds: float) -> str:
    return f"{seconds:.1f}s"
