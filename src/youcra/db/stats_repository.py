"""Repository for interacting with the `video_stats` table."""

from __future__ import annotations

from typing import List, Optional

from youcra.db import ConnectionFactory
from youcra.db.repositories import BaseRepository, RecordNotFoundError
from youcra.models.stats import VideoStats


class VideoStatsRepository(BaseRepository[VideoStats]):
    """Data access object for per-video aggregate statistics."""

    table_name = "video_stats"
    model_type = VideoStats
    insert_fields = (
        "video_id",
        "total_views",
        "total_likes",
        "unique_viewers",
        "viewer_ids",
    )
    conflict_fields = ("video_id",)
    auto_timestamp_field = "last_updated"

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def increment_views(self, video_id: str, user_id: str) -> VideoStats:
        """Add one view, creating the aggregate on the first event for the video.

        The increment is a single statement so concurrent deliveries cannot
        lose updates. Repeat viewers are not de-duplicated on this path.
        """

        query = (
            f"INSERT INTO {self.table_name} "
            "(video_id, total_views, total_likes, unique_viewers, viewer_ids, last_updated, created_at) "
            "VALUES (%(video_id)s, 1, 0, 1, ARRAY[%(user_id)s]::text[], NOW(), NOW()) "
            "ON CONFLICT (video_id) DO UPDATE SET "
            f"total_views = {self.table_name}.total_views + 1, last_updated = NOW() "
            "RETURNING *"
        )
        row = self._fetch_one(query, {"video_id": video_id, "user_id": user_id})
        return self.model_type.model_validate(row)

    def find_by_video_id(self, video_id: str) -> Optional[VideoStats]:
        """Return the aggregate for ``video_id``, if present."""

        try:
            return self.fetch_one("video_id = %(video_id)s", {"video_id": video_id})
        except RecordNotFoundError:
            return None

    def top_by_views(self, limit: int = 10) -> List[VideoStats]:
        """Return the most viewed videos, highest first."""

        query = f"SELECT * FROM {self.table_name} ORDER BY total_views DESC, video_id ASC LIMIT %(limit)s"
        rows = self._fetch_many(query, {"limit": limit})
        return [self.model_type.model_validate(row) for row in rows]


__all__ = ["VideoStatsRepository"]
