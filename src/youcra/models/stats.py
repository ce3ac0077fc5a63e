"""Models for per-user watch rows and cross-user aggregate statistics."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from youcra.models.base import YouCraBaseModel


class WatchedVideo(YouCraBaseModel):
    """Domain model representing a row in the ``watched_videos`` table."""

    id: Optional[UUID] = None
    user_id: str = Field(min_length=1, max_length=128)
    video_id: str = Field(min_length=1, max_length=20)
    watch_count: int = Field(default=0, ge=0)
    certified: bool = False
    last_watched_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoStats(YouCraBaseModel):
    """Domain model representing a row in the ``video_stats`` table.

    ``total_views`` is incremented on every watch write without viewer
    de-duplication; ``unique_viewers`` is only exact after a full recompute.
    """

    id: Optional[UUID] = None
    video_id: str = Field(min_length=1, max_length=20)
    total_views: int = Field(default=0, ge=0)
    total_likes: int = Field(default=0, ge=0)
    unique_viewers: int = Field(default=0, ge=0)
    viewer_ids: List[str] = Field(default_factory=list)
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None


__all__ = ["VideoStats", "WatchedVideo"]
