"""Push local certifications to the per-user remote watch rows."""

from __future__ import annotations

from typing import Optional, Protocol

from rich.console import Console

from youcra.models.session import CertificationCompletedEvent
from youcra.models.stats import WatchedVideo
from youcra.services.stats import StatsAggregator


class CertificationWriter(Protocol):
    def upsert_certification(self, user_id: str, video_id: str, *, certified: bool = True) -> WatchedVideo:
        ...


class RemoteCertificationSync:
    """Certification listener that mirrors a certified viewing remotely.

    The watched row is upserted first; the aggregator then sees the write the
    same way the server-side trigger would.
    """

    def __init__(
        self,
        *,
        writer: CertificationWriter,
        aggregator: Optional[StatsAggregator] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._writer = writer
        self._aggregator = aggregator
        self._console = console or Console()

    def __call__(self, event: CertificationCompletedEvent) -> None:
        if not event.user_id:
            self._console.log(f"[yellow]Sync:[/yellow] no signed-in user; {event.video_id} kept local only")
            return

        row = self._writer.upsert_certification(event.user_id, event.video_id, certified=True)
        self._console.log(
            f"[green]Sync:[/green] {event.video_id} certified remotely (watch_count={row.watch_count})"
        )
        if self._aggregator is not None:
            self._aggregator.on_watch_written(event.user_id, event.video_id, row)


__all__ = ["CertificationWriter", "RemoteCertificationSync"]
