"""Conversions between seconds, ISO-8601 durations, and display strings."""

from __future__ import annotations

import math
import re
from typing import Optional

_ISO_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def format_seconds(seconds: Optional[float]) -> str:
    """Render ``seconds`` as ``M:SS`` below one hour and ``H:MM:SS`` otherwise.

    Anything that is not a non-negative number renders as ``"0:00"``.
    """

    if seconds is None or isinstance(seconds, bool):
        return "0:00"
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "0:00"
    if math.isnan(value) or value < 0:
        return "0:00"

    total = int(value)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_iso8601_duration(text: Optional[str]) -> int:
    """Parse a YouTube ``PT#H#M#S`` duration into whole seconds.

    Each component is optional. Input without any recognisable component yields ``0``.
    """

    if not text:
        return 0

    match = _ISO_DURATION_PATTERN.search(text.strip().upper())
    if match is None:
        return 0

    hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def encode_iso8601_duration(seconds: int) -> str:
    """Encode whole seconds as the ``PT#H#M#S`` form the YouTube API returns."""

    total = max(0, int(seconds))
    if total == 0:
        return "PT0S"

    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = ["PT"]
    if hours:
        parts.append(f"{hours}H")
    if minutes:
        parts.append(f"{minutes}M")
    if secs:
        parts.append(f"{secs}S")
    return "".join(parts)


def seconds_from_duration_value(value: object) -> int:
    """Normalise an ISO-8601 string or a numeric value to whole seconds."""

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value) or value < 0:
            return 0
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.upper().startswith("PT"):
            return parse_iso8601_duration(stripped)
        try:
            return seconds_from_duration_value(float(stripped))
        except ValueError:
            return 0
    return 0


__all__ = [
    "encode_iso8601_duration",
    "format_seconds",
    "parse_iso8601_duration",
    "seconds_from_duration_value",
]
