"""Persisted map of which videos the local user has certified."""

from __future__ import annotations

from typing import Dict, Optional

from rich.console import Console

from youcra.db.local_store import CERTIFIED_VIDEOS_KEY, LocalStore
from youcra.utils.validation import is_usable_video_id


class CertifiedVideoStore:
    """Video id to certified-flag mapping, kept apart from watch counters."""

    def __init__(self, store: LocalStore, *, console: Optional[Console] = None) -> None:
        self._store = store
        self._console = console or Console()

    def load(self) -> Dict[str, bool]:
        raw = self._store.load_json(CERTIFIED_VIDEOS_KEY)
        return {video_id: value for video_id, value in raw.items() if isinstance(value, bool)}

    def is_certified(self, video_id: str) -> bool:
        if not is_usable_video_id(video_id):
            return False
        return self.load().get(video_id, False)

    def set_certified(self, video_id: str, certified: bool = True) -> None:
        if not is_usable_video_id(video_id):
            self._console.log(f"[yellow]Certified videos:[/yellow] ignoring invalid id {video_id!r}")
            return

        with self._store.transaction():
            flags = self.load()
            flags[video_id] = certified
            self._store.write_json(CERTIFIED_VIDEOS_KEY, flags)

    def reset(self) -> None:
        with self._store.transaction():
            self._store.write_json(CERTIFIED_VIDEOS_KEY, {})


__all__ = ["CertifiedVideoStore"]
