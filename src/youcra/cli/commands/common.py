"""Shared exit codes and lazily built services for CLI commands."""

from __future__ import annotations

from functools import cached_property
from typing import Optional

from rich.console import Console

from youcra.config.settings import Settings, get_settings
from youcra.db.connection import get_connection
from youcra.db.local_store import LocalStore
from youcra.db.stats_repository import VideoStatsRepository
from youcra.db.watched_video_repository import WatchedVideoRepository
from youcra.services.certified import CertifiedVideoStore
from youcra.services.metadata import MetadataService
from youcra.services.rewatch import RewatchPolicy
from youcra.services.stats import StatsAggregator
from youcra.services.watch_counts import WatchCountStore


class ExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    METADATA_ERROR = 2
    DATABASE_ERROR = 3
    AGGREGATION_ERROR = 4
    REWATCH_COOLDOWN = 5


class AppServices:
    """Services shared by the commands of one CLI invocation."""

    def __init__(self, console: Console, settings: Optional[Settings] = None) -> None:
        self.console = console
        self._settings = settings

    @cached_property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @cached_property
    def local_store(self) -> LocalStore:
        return LocalStore(self.settings.data_dir, console=self.console)

    @cached_property
    def watch_counts(self) -> WatchCountStore:
        return WatchCountStore(self.local_store, settings=self.settings, console=self.console)

    @cached_property
    def certified_videos(self) -> CertifiedVideoStore:
        return CertifiedVideoStore(self.local_store, console=self.console)

    @cached_property
    def rewatch_policy(self) -> RewatchPolicy:
        return RewatchPolicy(cooldown_seconds=self.settings.rewatch_cooldown_seconds)

    @cached_property
    def metadata(self) -> MetadataService:
        return MetadataService(settings=self.settings, console=self.console)

    @cached_property
    def stats_repository(self) -> VideoStatsRepository:
        return VideoStatsRepository(get_connection)

    @cached_property
    def watched_repository(self) -> WatchedVideoRepository:
        return WatchedVideoRepository(get_connection)

    @cached_property
    def aggregator(self) -> StatsAggregator:
        return StatsAggregator(
            stats_store=self.stats_repository,
            watched_source=self.watched_repository,
            console=self.console,
        )

    @property
    def database_configured(self) -> bool:
        return self.settings.database_url is not None


__all__ = ["AppServices", "ExitCode"]
