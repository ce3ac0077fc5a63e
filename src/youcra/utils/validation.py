"""Validation helpers for YouTube URLs and identifiers."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse


class InvalidVideoIdError(ValueError):
    """Raised when a provided value is not a usable YouTube video id."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")
_PLACEHOLDER_IDS = frozenset({"undefined", "null", "none", "nan"})


def is_usable_video_id(video_id: Optional[str]) -> bool:
    """Return ``False`` for null or blank ids and placeholder strings such as ``"undefined"``."""

    if not isinstance(video_id, str):
        return False
    stripped = video_id.strip()
    if not stripped:
        return False
    return stripped.lower() not in _PLACEHOLDER_IDS


def extract_video_id(url: str) -> str:
    """Extract and validate a YouTube video ID from a URL or raw ID string."""

    if not is_usable_video_id(url):
        raise InvalidVideoIdError(f"Invalid YouTube URL or video ID: {url!r}")

    stripped = url.strip()
    if _VIDEO_ID_PATTERN.fullmatch(stripped):
        return stripped

    parsed = urlparse(stripped)
    if parsed.netloc in {"youtu.be"}:
        candidate = parsed.path.lstrip("/")
        if _VIDEO_ID_PATTERN.fullmatch(candidate):
            return candidate

    if parsed.netloc.endswith("youtube.com"):
        if parsed.path == "/watch":
            candidate_list = parse_qs(parsed.query).get("v", [])
            if candidate_list and _VIDEO_ID_PATTERN.fullmatch(candidate_list[0]):
                return candidate_list[0]
        else:
            embedded_match = re.search(r"/(?:embed|shorts)/([0-9A-Za-z_-]{11})", parsed.path)
            if embedded_match:
                return embedded_match.group(1)

    raise InvalidVideoIdError(f"Invalid YouTube URL or video ID: {url!r}")


__all__ = ["InvalidVideoIdError", "extract_video_id", "is_usable_video_id"]
