"""Models describing local watch bookkeeping and certification progress."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Optional, Sequence

from pydantic import ConfigDict, Field

from youcra.models.base import YouCraBaseModel

# 3000-01-01T00:00:00Z; later values cannot be converted to a local date everywhere.
MAX_TIMESTAMP_MS = 32_503_680_000_000

TimestampMs = Annotated[int, Field(ge=0, le=MAX_TIMESTAMP_MS)]


def trim_history(history: Sequence[int], limit: int) -> List[int]:
    """Keep the ``limit`` most recent entries of ``history``."""

    if limit < 1:
        raise ValueError(f"History limit must be at least 1, got {limit}")
    return list(history)[-limit:]


class WatchRecord(YouCraBaseModel):
    """Per-video completion counter with a bounded history of timestamps.

    Timestamps are milliseconds since the epoch. Field aliases keep the
    camelCase layout of the persisted JSON document.
    """

    watch_count: int = Field(default=0, ge=0, alias="watchCount")
    last_watched_at: Optional[TimestampMs] = Field(default=None, alias="lastWatchedAt")
    watch_history: List[TimestampMs] = Field(default_factory=list, alias="watchHistory")

    model_config = ConfigDict(extra="ignore", validate_assignment=True, populate_by_name=True)

    def to_storage(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)

    def normalised(self, history_limit: int) -> "WatchRecord":
        """Return a copy whose history is sorted and bounded and whose ``last_watched_at`` matches it.

        Records without history, such as legacy bare counts, keep their
        ``last_watched_at`` as stored.
        """

        history = trim_history(sorted(self.watch_history), history_limit)
        return WatchRecord(
            watch_count=max(self.watch_count, len(self.watch_history)),
            last_watched_at=history[-1] if history else self.last_watched_at,
            watch_history=history,
        )


class CertificationStatus(YouCraBaseModel):
    """Derived progress towards watch certification. Never persisted."""

    message: str
    progress_percent: float = Field(ge=0, le=100)
    is_completed: bool
    required_seconds: int = Field(ge=0)


class VideoCategory(str, Enum):
    """Length bucket that selects the certification rule."""

    SHORT = "short"
    LONG = "long"

    @property
    def label(self) -> str:
        return "over 30 minutes" if self is VideoCategory.LONG else "30 minutes or less"


__all__ = [
    "MAX_TIMESTAMP_MS",
    "CertificationStatus",
    "TimestampMs",
    "VideoCategory",
    "WatchRecord",
    "trim_history",
]
