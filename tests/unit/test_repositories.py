"""Tests for the Postgres repositories using a recording fake connection."""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pytest

from youcra.db.repositories import RecordNotFoundError, RepositoryError
from youcra.db.stats_repository import VideoStatsRepository
from youcra.db.watched_video_repository import WatchedVideoRepository
from youcra.models.stats import VideoStats

VIDEO_ID = "dQw4w9WgXcQ"


class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self._connection = connection

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def execute(self, query: str, params: Dict[str, Any]) -> None:
        self._connection.executed.append((query, dict(params)))

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return self._connection.rows[0] if self._connection.rows else None

    def fetchall(self) -> List[Dict[str, Any]]:
        return list(self._connection.rows)


class FakeConnection:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows = rows or []
        self.executed: List[tuple] = []
        self.cursor_factories: List[object] = []

    def cursor(self, cursor_factory: object = None) -> FakeCursor:
        self.cursor_factories.append(cursor_factory)
        return FakeCursor(self)


def _factory(connection: FakeConnection):
    @contextmanager
    def factory():
        yield connection

    return factory


def _stats_row(**overrides: Any) -> Dict[str, Any]:
    row = {
        "id": "7f1c7b5e-1d2a-4c1b-9c59-2c5b7f0f2a11",
        "video_id": VIDEO_ID,
        "total_views": 1,
        "total_likes": 0,
        "unique_viewers": 1,
        "viewer_ids": ["alice"],
        "last_updated": "2024-06-26T15:00:00+00:00",
        "created_at": "2024-06-26T15:00:00+00:00",
    }
    row.update(overrides)
    return row


def _watched_row(**overrides: Any) -> Dict[str, Any]:
    row = {
        "id": "0b6f0a9e-8d7e-4d57-a1e5-2d8fd7b4c0f3",
        "user_id": "alice",
        "video_id": VIDEO_ID,
        "watch_count": 1,
        "certified": True,
        "last_watched_at": "2024-06-26T15:00:00+00:00",
        "updated_at": "2024-06-26T15:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestVideoStatsRepository:
    def test_increment_views_is_a_single_upsert(self):
        connection = FakeConnection([_stats_row(total_views=4)])
        repository = VideoStatsRepository(_factory(connection))

        stats = repository.increment_views(VIDEO_ID, "alice")

        assert stats.total_views == 4
        assert len(connection.executed) == 1
        query, params = connection.executed[0]
        assert "ON CONFLICT (video_id) DO UPDATE" in query
        assert "total_views = video_stats.total_views + 1" in query
        assert "ARRAY[%(user_id)s]::text[]" in query
        assert params == {"video_id": VIDEO_ID, "user_id": "alice"}

    def test_upsert_overwrites_aggregate_columns(self):
        connection = FakeConnection([_stats_row(total_views=7, unique_viewers=3)])
        repository = VideoStatsRepository(_factory(connection))

        repository.upsert(VideoStats(video_id=VIDEO_ID, total_views=7, unique_viewers=3, viewer_ids=["a", "b", "c"]))

        query, params = connection.executed[0]
        assert "ON CONFLICT (video_id) DO UPDATE SET" in query
        assert "total_views = EXCLUDED.total_views" in query
        assert "viewer_ids = EXCLUDED.viewer_ids" in query
        assert "last_updated = NOW()" in query
        assert "video_id = EXCLUDED.video_id" not in query
        assert "created_at" not in query
        assert params["viewer_ids"] == ["a", "b", "c"]

    def test_find_missing_returns_none(self):
        repository = VideoStatsRepository(_factory(FakeConnection([])))
        assert repository.find_by_video_id(VIDEO_ID) is None

    def test_top_by_views(self):
        connection = FakeConnection([_stats_row(total_views=9), _stats_row(video_id="9bZkp7q19f0", total_views=2)])
        repository = VideoStatsRepository(_factory(connection))

        result = repository.top_by_views(limit=2)

        assert [item.total_views for item in result] == [9, 2]
        query, params = connection.executed[0]
        assert "ORDER BY total_views DESC" in query
        assert params == {"limit": 2}


class TestWatchedVideoRepository:
    def test_upsert_certification_increments_count(self):
        connection = FakeConnection([_watched_row(watch_count=2)])
        repository = WatchedVideoRepository(_factory(connection))

        row = repository.upsert_certification("alice", VIDEO_ID)

        assert row.watch_count == 2
        query, params = connection.executed[0]
        assert "ON CONFLICT (user_id, video_id) DO UPDATE" in query
        assert "watch_count = watched_videos.watch_count + 1" in query
        assert params == {"user_id": "alice", "video_id": VIDEO_ID, "certified": True}

    def test_fetch_all_validates_rows(self):
        connection = FakeConnection([_watched_row(), _watched_row(user_id="bob")])
        repository = WatchedVideoRepository(_factory(connection))

        rows = repository.fetch_all()

        assert [row.user_id for row in rows] == ["alice", "bob"]
        assert connection.executed[0][0] == "SELECT * FROM watched_videos"

    def test_find_missing_returns_none(self):
        repository = WatchedVideoRepository(_factory(FakeConnection([])))
        assert repository.find("alice", VIDEO_ID) is None

    def test_get_by_id_missing_raises(self):
        repository = WatchedVideoRepository(_factory(FakeConnection([])))
        with pytest.raises(RecordNotFoundError):
            repository.get_by_id("0b6f0a9e-8d7e-4d57-a1e5-2d8fd7b4c0f3")


def test_upsert_requires_conflict_fields():
    class NoConflictRepository(VideoStatsRepository):
        conflict_fields = ()

    repository = NoConflictRepository(_factory(FakeConnection([_stats_row()])))

    with pytest.raises(RepositoryError):
        repository.upsert(VideoStats(video_id=VIDEO_ID))
