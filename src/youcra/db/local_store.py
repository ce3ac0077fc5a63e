"""File-backed key/value store standing in for browser local storage."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from rich.console import Console

WATCH_COUNTS_KEY = "video_watch_counts"
CERTIFIED_VIDEOS_KEY = "certified_videos"

_ROOT_LOCKS: Dict[Path, threading.RLock] = {}
_ROOT_LOCKS_GUARD = threading.Lock()


def _lock_for(root: Path) -> threading.RLock:
    """Return the lock shared by every store opened on ``root``."""

    key = root.resolve()
    with _ROOT_LOCKS_GUARD:
        return _ROOT_LOCKS.setdefault(key, threading.RLock())


class StorageReadError(RuntimeError):
    """Raised when a stored value cannot be decoded as a JSON object."""


class LocalStore:
    """Persist JSON documents as one file per key under ``root``.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written document behind. :meth:`transaction` serialises
    read-modify-write cycles across threads, including threads that opened
    separate stores on the same directory.
    """

    def __init__(self, root: Path, *, console: Optional[Console] = None) -> None:
        self._root = Path(root).expanduser()
        self._console = console or Console()
        self._lock = _lock_for(self._root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        """Return the raw text stored under ``key`` or ``None`` when absent."""

        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, self.path_for(key))
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def remove_item(self, key: str) -> None:
        with self._lock:
            self.path_for(key).unlink(missing_ok=True)

    def read_json(self, key: str) -> Dict[str, Any]:
        """Decode the JSON object stored under ``key``.

        Raises
        ------
        StorageReadError
            If the key is absent or does not hold a JSON object.
        """

        try:
            raw = self.get_item(key)
        except OSError as exc:
            raise StorageReadError(f"Could not read {key!r}: {exc}") from exc
        if raw is None:
            raise StorageReadError(f"No value stored under {key!r}")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageReadError(f"Malformed JSON under {key!r}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageReadError(f"Expected a JSON object under {key!r}, got {type(data).__name__}")
        return data

    def load_json(self, key: str) -> Dict[str, Any]:
        """Like :meth:`read_json` but treats any read failure as an empty document."""

        try:
            return self.read_json(key)
        except StorageReadError as exc:
            if self.has_item(key):
                self._console.log(f"[yellow]Local store:[/yellow] ignoring unreadable value ({exc})")
            return {}

    def write_json(self, key: str, data: Dict[str, Any]) -> None:
        self.set_item(key, json.dumps(data, ensure_ascii=False, separators=(",", ":")))

    def has_item(self, key: str) -> bool:
        return self.path_for(key).exists()

    @contextmanager
    def transaction(self) -> Iterator["LocalStore"]:
        """Hold the store lock for the duration of a read-modify-write cycle."""

        with self._lock:
            yield self


__all__ = [
    "CERTIFIED_VIDEOS_KEY",
    "LocalStore",
    "StorageReadError",
    "WATCH_COUNTS_KEY",
]
