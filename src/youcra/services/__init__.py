"""Service layer for the YouCra application."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def epoch_millis() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""

    return int(time.time() * 1000)


__all__ = ["Clock", "epoch_millis"]
