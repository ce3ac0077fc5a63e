"""Shared pytest fixtures for YouCra tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import pytest
from rich.console import Console

from youcra.config.settings import Settings, get_settings
from youcra.db.local_store import LocalStore
from youcra.services.certified import CertifiedVideoStore
from youcra.services.rewatch import RewatchPolicy
from youcra.services.watch_counts import WatchCountStore


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


class ManualTicker:
    """Ticker stand-in; tests drive ticks by calling ``session.tick()``."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.stops = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.starts += 1
        self.callback = callback

    def stop(self) -> None:
        self.stops += 1
        self.callback = None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def console() -> Console:
    return Console(quiet=True)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(YOUCRA_DATA_DIR=str(tmp_path / "data"), DATABASE_URL=None, YOUTUBE_API_KEY=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(int(datetime(2024, 6, 26, 15, 0, 0).timestamp() * 1000))


@pytest.fixture
def local_store(settings: Settings, console: Console) -> LocalStore:
    return LocalStore(settings.data_dir, console=console)


@pytest.fixture
def watch_counts(local_store: LocalStore, settings: Settings, console: Console, clock: FakeClock) -> WatchCountStore:
    return WatchCountStore(local_store, settings=settings, console=console, clock=clock)


@pytest.fixture
def certified_videos(local_store: LocalStore, console: Console) -> CertifiedVideoStore:
    return CertifiedVideoStore(local_store, console=console)


@pytest.fixture
def rewatch_policy(clock: FakeClock) -> RewatchPolicy:
    return RewatchPolicy(cooldown_seconds=3600, clock=clock)


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


class RecordingListener:
    def __init__(self) -> None:
        self.events: List[object] = []

    def __call__(self, event: object) -> None:
        self.events.append(event)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
