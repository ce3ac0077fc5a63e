"""Repository for interacting with the `watched_videos` table."""

from __future__ import annotations

from typing import Optional

from youcra.db import ConnectionFactory
from youcra.db.repositories import BaseRepository, RecordNotFoundError
from youcra.models.stats import WatchedVideo


class WatchedVideoRepository(BaseRepository[WatchedVideo]):
    """Data access object for each user's watched-video rows."""

    table_name = "watched_videos"
    model_type = WatchedVideo
    insert_fields = (
        "user_id",
        "video_id",
        "watch_count",
        "certified",
        "last_watched_at",
    )
    conflict_fields = ("user_id", "video_id")
    auto_timestamp_field = "updated_at"

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def upsert_certification(self, user_id: str, video_id: str, *, certified: bool = True) -> WatchedVideo:
        """Record a certified viewing, incrementing the user's remote watch count."""

        query = (
            f"INSERT INTO {self.table_name} (user_id, video_id, watch_count, certified, last_watched_at, updated_at) "
            "VALUES (%(user_id)s, %(video_id)s, 1, %(certified)s, NOW(), NOW()) "
            "ON CONFLICT (user_id, video_id) DO UPDATE SET "
            f"watch_count = {self.table_name}.watch_count + 1, certified = EXCLUDED.certified, "
            "last_watched_at = NOW(), updated_at = NOW() "
            "RETURNING *"
        )
        row = self._fetch_one(query, {"user_id": user_id, "video_id": video_id, "certified": certified})
        return self.model_type.model_validate(row)

    def find(self, user_id: str, video_id: str) -> Optional[WatchedVideo]:
        try:
            return self.fetch_one(
                "user_id = %(user_id)s AND video_id = %(video_id)s",
                {"user_id": user_id, "video_id": video_id},
            )
        except RecordNotFoundError:
            return None


__all__ = ["WatchedVideoRepository"]
