"""Lifecycle states and events emitted by a watch session."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from youcra.models.base import YouCraBaseModel


class SessionState(str, Enum):
    """States of a single video viewing."""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    CERTIFIED = "certified"


class CertificationCompletedEvent(YouCraBaseModel):
    """Payload handed to token-award and analytics listeners."""

    video_id: str = Field(min_length=1)
    user_id: Optional[str] = None
    completed_at: datetime
    watched_seconds: int = Field(ge=0)
    liked: bool = False


__all__ = ["CertificationCompletedEvent", "SessionState"]
