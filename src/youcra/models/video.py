"""Pydantic model describing normalised YouTube video metadata."""

from __future__ import annotations

from pydantic import Field

from youcra.models.base import YouCraBaseModel


class VideoMetadata(YouCraBaseModel):
    """Video metadata validated once at the provider boundary.

    Instances are built by :mod:`youcra.services.metadata` from either a YouTube
    Data API ``videos.list`` item or a ``yt-dlp`` info dictionary; downstream
    code never touches the raw provider payloads.
    """

    video_id: str = Field(min_length=1, max_length=20)
    title: str = ""
    channel_title: str = ""
    thumbnail_url: str = ""
    duration_encoded: str = "PT0S"
    duration_seconds: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)


__all__ = ["VideoMetadata"]
