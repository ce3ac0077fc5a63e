"""Durable per-video watch counters backed by the local store."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import ValidationError
from rich.console import Console

from youcra.config.settings import Settings, get_settings
from youcra.db.local_store import WATCH_COUNTS_KEY, LocalStore
from youcra.models.watch import WatchRecord, trim_history
from youcra.services import Clock, epoch_millis
from youcra.utils.validation import is_usable_video_id


class WatchCountStore:
    """Per-video certification counters with a bounded timestamp history.

    The whole mapping is rewritten on every increment. Unreadable or corrupt
    storage is treated as an empty store and never raised to callers.
    """

    def __init__(
        self,
        store: LocalStore,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        clock: Clock = epoch_millis,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._console = console or Console()
        self._clock = clock
        self._history_limit = self._settings.watch_history_limit
        if self._history_limit < 1:
            raise ValueError(f"WATCH_HISTORY_LIMIT must be at least 1, got {self._history_limit}")

    def load(self) -> Dict[str, WatchRecord]:
        """Return every stored record keyed by video id."""

        raw = self._store.load_json(WATCH_COUNTS_KEY)
        records: Dict[str, WatchRecord] = {}
        for video_id, payload in raw.items():
            record = self._coerce_record(video_id, payload)
            if record is not None:
                records[video_id] = record
        return records

    def increment_watch_count(self, video_id: str) -> WatchRecord:
        """Record a completed certification for ``video_id`` and persist the store."""

        if not is_usable_video_id(video_id):
            self._console.log(f"[yellow]Watch counts:[/yellow] ignoring increment for invalid id {video_id!r}")
            return WatchRecord()

        with self._store.transaction():
            records = self.load()
            now = self._clock()
            current = records.get(video_id, WatchRecord())
            history = trim_history([*current.watch_history, now], self._history_limit)
            updated = WatchRecord(
                watch_count=current.watch_count + 1,
                last_watched_at=now,
                watch_history=history,
            )
            records[video_id] = updated
            self._persist(records)

        self._console.log(
            f"[green]Watch counts:[/green] {video_id} watched {updated.watch_count} time(s)"
        )
        return updated

    def get_watch_count(self, video_id: str) -> WatchRecord:
        """Return the record for ``video_id`` or a zero-valued default."""

        if not is_usable_video_id(video_id):
            return WatchRecord()
        return self.load().get(video_id, WatchRecord())

    def get_today_watch_count(self) -> int:
        """Count history entries that fall on the current local calendar day."""

        today = datetime.fromtimestamp(self._clock() / 1000).date()
        total = 0
        for record in self.load().values():
            total += sum(
                1 for timestamp in record.watch_history if datetime.fromtimestamp(timestamp / 1000).date() == today
            )
        return total

    def reset(self) -> None:
        """Clear every record and persist the empty store immediately."""

        with self._store.transaction():
            self._persist({})
        self._console.log("[yellow]Watch counts:[/yellow] all records cleared")

    def _persist(self, records: Dict[str, WatchRecord]) -> None:
        self._store.write_json(
            WATCH_COUNTS_KEY,
            {video_id: record.to_storage() for video_id, record in records.items()},
        )

    def _coerce_record(self, video_id: str, payload: object) -> Optional[WatchRecord]:
        # Older builds stored a bare integer count per video.
        if isinstance(payload, int) and not isinstance(payload, bool):
            return WatchRecord(watch_count=max(0, payload))
        if not isinstance(payload, dict):
            return None
        try:
            return WatchRecord.model_validate(payload).normalised(self._history_limit)
        except ValidationError:
            self._console.log(f"[yellow]Watch counts:[/yellow] dropping malformed record for {video_id}")
            return None


__all__ = ["WatchCountStore"]
