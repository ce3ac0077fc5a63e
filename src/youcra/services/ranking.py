"""Popularity scoring for the ranking and report views."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from youcra.models.base import YouCraBaseModel
from youcra.models.stats import VideoStats
from youcra.models.video import VideoMetadata

LIKE_WEIGHT = 10
VIEW_WEIGHT = 0.001
CERTIFICATION_WEIGHT = 50
WATCHER_WEIGHT = 5


class RankingEntry(YouCraBaseModel):
    """One row of the popularity ranking."""

    video_id: str
    title: str = ""
    like_count: int = 0
    view_count: int = 0
    certification_count: int = 0
    watcher_count: int = 0

    @property
    def score(self) -> float:
        return calculate_video_score(
            likes=self.like_count,
            views=self.view_count,
            certifications=self.certification_count,
            watchers=self.watcher_count,
        )


def calculate_video_score(*, likes: int = 0, views: int = 0, certifications: int = 0, watchers: int = 0) -> float:
    """Weighted popularity score; certifications dominate raw YouTube views."""

    return (
        likes * LIKE_WEIGHT
        + views * VIEW_WEIGHT
        + certifications * CERTIFICATION_WEIGHT
        + watchers * WATCHER_WEIGHT
    )


def entry_from_stats(stats: VideoStats, metadata: Optional[VideoMetadata] = None) -> RankingEntry:
    """Combine in-app aggregates with YouTube metadata for ranking."""

    return RankingEntry(
        video_id=stats.video_id,
        title=metadata.title if metadata else "",
        like_count=stats.total_likes + (metadata.like_count if metadata else 0),
        view_count=metadata.view_count if metadata else 0,
        certification_count=stats.total_views,
        watcher_count=stats.unique_viewers,
    )


def unique_videos(entries: Iterable[RankingEntry]) -> List[RankingEntry]:
    """Drop repeated video ids, keeping the first occurrence."""

    seen = set()
    result: List[RankingEntry] = []
    for entry in entries:
        if entry.video_id in seen:
            continue
        seen.add(entry.video_id)
        result.append(entry)
    return result


def rank_videos(
    stats: Iterable[VideoStats],
    metadata: Optional[Mapping[str, VideoMetadata]] = None,
    *,
    limit: Optional[int] = None,
) -> List[RankingEntry]:
    """Return ranking entries ordered by descending score."""

    lookup = metadata or {}
    entries = unique_videos(entry_from_stats(item, lookup.get(item.video_id)) for item in stats)
    ranked = sorted(entries, key=lambda entry: entry.score, reverse=True)
    return ranked[:limit] if limit is not None else ranked


__all__ = [
    "RankingEntry",
    "calculate_video_score",
    "entry_from_stats",
    "rank_videos",
    "unique_videos",
]
