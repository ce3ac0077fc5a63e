"""Time-gated rewatch eligibility for previously certified videos."""

from __future__ import annotations

import math
from typing import Optional

from youcra.models.watch import WatchRecord
from youcra.services import Clock, epoch_millis

DEFAULT_COOLDOWN_SECONDS = 3600
_MILLIS_PER_MINUTE = 60_000


class RewatchCooldownError(RuntimeError):
    """Raised when a video is opened for certification before its cooldown elapsed."""

    def __init__(self, video_id: str, minutes_remaining: int) -> None:
        super().__init__(f"{video_id} can be certified again in {minutes_remaining} minute(s)")
        self.video_id = video_id
        self.minutes_remaining = minutes_remaining


class RewatchPolicy:
    """Decide whether a video may be certified again.

    A video becomes eligible once ``cooldown_seconds`` have elapsed since its
    last certification. The boundary itself counts as elapsed.
    """

    def __init__(self, *, cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS, clock: Clock = epoch_millis) -> None:
        self._cooldown_ms = int(cooldown_seconds) * 1000
        self._clock = clock

    @property
    def cooldown_ms(self) -> int:
        return self._cooldown_ms

    def can_rewatch(self, record: Optional[WatchRecord]) -> bool:
        if record is None or record.last_watched_at is None:
            return True
        return self._elapsed_ms(record.last_watched_at) >= self._cooldown_ms

    def minutes_until_rewatch(self, record: Optional[WatchRecord]) -> int:
        """Whole minutes, rounded up, until :meth:`can_rewatch` turns ``True``."""

        if record is None or record.last_watched_at is None:
            return 0
        remaining_ms = self._cooldown_ms - self._elapsed_ms(record.last_watched_at)
        if remaining_ms <= 0:
            return 0
        return math.ceil(remaining_ms / _MILLIS_PER_MINUTE)

    def ensure_can_rewatch(self, video_id: str, record: Optional[WatchRecord]) -> None:
        """Raise :class:`RewatchCooldownError` unless :meth:`can_rewatch` holds."""

        if not self.can_rewatch(record):
            raise RewatchCooldownError(video_id, self.minutes_until_rewatch(record))

    def _elapsed_ms(self, last_watched_at: int) -> int:
        return self._clock() - last_watched_at


__all__ = ["DEFAULT_COOLDOWN_SECONDS", "RewatchCooldownError", "RewatchPolicy"]
