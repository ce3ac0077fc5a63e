"""Aggregate per-video view statistics from per-user watch rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Set

from rich.console import Console

from youcra.models.stats import VideoStats, WatchedVideo
from youcra.utils.validation import is_usable_video_id


class AggregationWriteError(RuntimeError):
    """Raised when an aggregate cannot be written; the caller's platform retries."""


class StatsStore(Protocol):
    """Write/read surface of the aggregate statistics store."""

    def increment_views(self, video_id: str, user_id: str) -> VideoStats:
        ...

    def upsert(self, model: VideoStats) -> VideoStats:
        ...


class WatchedVideoSource(Protocol):
    """Read surface of the per-user watched-video rows."""

    def fetch_all(self) -> List[WatchedVideo]:
        ...


@dataclass(slots=True)
class _Tally:
    total_views: int = 0
    viewers: Set[str] = field(default_factory=set)


def build_aggregates(rows: Iterable[WatchedVideo]) -> Dict[str, VideoStats]:
    """Recompute aggregates from the complete set of watch rows.

    Every row contributes its ``watch_count`` (at least one view) and its user
    to the distinct viewer set of the video.
    """

    tallies: Dict[str, _Tally] = {}
    for row in rows:
        tally = tallies.setdefault(row.video_id, _Tally())
        tally.total_views += row.watch_count or 1
        tally.viewers.add(row.user_id)

    return {
        video_id: VideoStats(
            video_id=video_id,
            total_views=tally.total_views,
            total_likes=0,
            unique_viewers=len(tally.viewers),
            viewer_ids=sorted(tally.viewers),
        )
        for video_id, tally in tallies.items()
    }


class StatsAggregator:
    """Keep the ``video_stats`` aggregates in step with watch rows.

    :meth:`on_watch_written` is the incremental path run for every write to a
    user's watch row. :meth:`recompute_all` is the periodic job that rebuilds
    every aggregate and overwrites the incremental values.
    """

    def __init__(
        self,
        *,
        stats_store: StatsStore,
        watched_source: WatchedVideoSource,
        console: Optional[Console] = None,
    ) -> None:
        self._stats_store = stats_store
        self._watched_source = watched_source
        self._console = console or Console()

    def on_watch_written(
        self,
        user_id: str,
        video_id: str,
        after: Optional[WatchedVideo],
    ) -> Optional[VideoStats]:
        """Handle a create/update/delete of ``users/{user_id}/watched/{video_id}``.

        Deletions (``after is None``) are ignored.

        Raises
        ------
        AggregationWriteError
            If the statistics store rejects the write.
        """

        self._console.log(
            f"[blue]Stats:[/blue] watch row changed (user_id={user_id}, video_id={video_id}, deleted={after is None})"
        )
        if after is None:
            return None
        if not is_usable_video_id(video_id) or not user_id:
            self._console.log(f"[yellow]Stats:[/yellow] skipping event with invalid ids ({user_id!r}, {video_id!r})")
            return None

        try:
            stats = self._stats_store.increment_views(video_id, user_id)
        except Exception as exc:
            self._console.log(f"[red]Stats:[/red] failed to update aggregate for {video_id}: {exc}")
            raise AggregationWriteError(f"Could not update statistics for {video_id}") from exc

        self._console.log(f"[green]Stats:[/green] {video_id} now has {stats.total_views} view(s)")
        return stats

    def recompute_all(self) -> List[VideoStats]:
        """Rebuild every aggregate from the full watch-row set and write it back."""

        self._console.log("[blue]Stats:[/blue] periodic recompute started")
        aggregates = build_aggregates(self._watched_source.fetch_all())

        written: List[VideoStats] = []
        for video_id, stats in sorted(aggregates.items()):
            try:
                written.append(self._stats_store.upsert(stats))
            except Exception as exc:
                self._console.log(f"[red]Stats:[/red] periodic recompute failed at {video_id}: {exc}")
                raise AggregationWriteError(f"Could not write recomputed statistics for {video_id}") from exc

        self._console.log(f"[green]Stats:[/green] periodic recompute wrote {len(written)} aggregate(s)")
        return written


__all__ = [
    "AggregationWriteError",
    "StatsAggregator",
    "StatsStore",
    "WatchedVideoSource",
    "build_aggregates",
]
