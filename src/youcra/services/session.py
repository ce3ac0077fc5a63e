"""Per-video viewing session that accumulates watch time and certifies it."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from rich.console import Console

from youcra.config.settings import Settings, get_settings
from youcra.models.session import CertificationCompletedEvent, SessionState
from youcra.models.watch import CertificationStatus
from youcra.services.certification import get_certification_status, remaining_seconds
from youcra.services.certified import CertifiedVideoStore
from youcra.services.rewatch import RewatchPolicy
from youcra.services.watch_counts import WatchCountStore
from youcra.utils.logging import log_debug
from youcra.utils.validation import InvalidVideoIdError, is_usable_video_id

CertificationListener = Callable[[CertificationCompletedEvent], None]


class Ticker(Protocol):
    """Repeating timer owned by exactly one session."""

    @property
    def running(self) -> bool:
        """Whether the timer is currently scheduled."""

    def start(self, callback: Callable[[], None]) -> None:
        """Begin invoking ``callback`` once per interval."""

    def stop(self) -> None:
        """Cancel the timer. Safe to call when already stopped."""


class AsyncioTicker:
    """Ticker backed by a task on the running asyncio event loop."""

    def __init__(self, interval_seconds: float = 1.0) -> None:
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], None]) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(callback))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, callback: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(self._interval)
            callback()


class WatchSession:
    """State machine for one open video player.

    ``Idle -> Loading -> Playing <-> Paused -> Certified -> Idle``. While
    ``Playing`` the ticker adds one second per tick. Reaching certification
    persists the certified flag, increments the watch count, and notifies
    listeners, at most once per open/close cycle. Every exit from ``Playing``
    stops the ticker; use the session as a context manager to guarantee it is
    released.
    """

    def __init__(
        self,
        *,
        watch_counts: WatchCountStore,
        certified_videos: CertifiedVideoStore,
        rewatch_policy: Optional[RewatchPolicy] = None,
        ticker: Optional[Ticker] = None,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        user_id: Optional[str] = None,
        listeners: Optional[List[CertificationListener]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._watch_counts = watch_counts
        self._certified_videos = certified_videos
        self._rewatch_policy = rewatch_policy or RewatchPolicy(
            cooldown_seconds=self._settings.rewatch_cooldown_seconds
        )
        self._ticker: Ticker = ticker or AsyncioTicker(self._settings.tick_interval_seconds)
        self._threshold = self._settings.long_video_threshold_seconds
        self._listeners: List[CertificationListener] = list(listeners or [])
        self.user_id = user_id

        self.state = SessionState.IDLE
        self.video_id: Optional[str] = None
        self.duration_seconds = 0
        self.watched_seconds = 0
        self.video_ended = False
        self.liked = False
        self.certified = False
        self._autoplay = False
        self._certified_this_session = False

    # ------------------------------------------------------------------ #
    # Context management                                                 #
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "WatchSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Transitions                                                        #
    # ------------------------------------------------------------------ #
    def add_listener(self, listener: CertificationListener) -> None:
        self._listeners.append(listener)

    def open(self, video_id: str, *, duration_seconds: int = 0, autoplay: bool = False) -> None:
        """Start a new viewing of ``video_id``, closing any current one first.

        Raises
        ------
        InvalidVideoIdError
            If ``video_id`` is not usable.
        RewatchCooldownError
            If ``video_id`` was certified within the cooldown window. The
            current viewing, if any, is left untouched.
        """

        if not is_usable_video_id(video_id):
            raise InvalidVideoIdError(f"Cannot open a session for video id {video_id!r}")
        self._rewatch_policy.ensure_can_rewatch(video_id, self._watch_counts.get_watch_count(video_id))
        if self.state not in (SessionState.IDLE, SessionState.CERTIFIED):
            self.close()

        self.video_id = video_id
        self.duration_seconds = max(0, int(duration_seconds))
        self.watched_seconds = 0
        self.video_ended = False
        self.liked = False
        self._autoplay = autoplay
        self._certified_this_session = False
        self.certified = self._certified_videos.is_certified(video_id)
        self.state = SessionState.LOADING
        log_debug(self._console, f"session opened for {video_id} (certified={self.certified})")

    def player_ready(self, duration_seconds: Optional[int] = None) -> None:
        """Handle the player's ready signal, optionally with the real duration."""

        if self.state is not SessionState.LOADING:
            return
        if duration_seconds is not None:
            self.duration_seconds = max(0, int(duration_seconds))
        self.state = SessionState.PAUSED
        if self._autoplay:
            self.play()

    def play(self) -> None:
        if self.state is not SessionState.PAUSED:
            return
        self.state = SessionState.PLAYING
        self.video_ended = False
        self._ticker.start(self.tick)

    def pause(self) -> None:
        if self.state is not SessionState.PLAYING:
            return
        self._ticker.stop()
        self.state = SessionState.PAUSED

    def tick(self) -> None:
        """Add one watched second while playing."""

        if self.state is not SessionState.PLAYING:
            return
        self.watched_seconds += 1
        self._evaluate()

    def on_ended(self) -> None:
        """Handle the player's ended signal."""

        if self.state in (SessionState.IDLE, SessionState.LOADING):
            return
        self.video_ended = True
        if self.state is SessionState.PLAYING:
            self._ticker.stop()
            self.state = SessionState.PAUSED
        self._evaluate()

    def toggle_like(self) -> bool:
        self.liked = not self.liked
        return self.liked

    def close(self) -> None:
        """Return to ``Idle`` from any state, releasing the ticker."""

        self._ticker.stop()
        self.state = SessionState.IDLE
        self.video_id = None

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #
    def status(self) -> CertificationStatus:
        return get_certification_status(
            self.duration_seconds,
            self.watched_seconds,
            self.video_ended,
            threshold_seconds=self._threshold,
        )

    def remaining_seconds(self) -> int:
        return remaining_seconds(
            self.duration_seconds,
            self.watched_seconds,
            self.video_ended,
            threshold_seconds=self._threshold,
        )

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _evaluate(self) -> None:
        if self.state is SessionState.CERTIFIED:
            return
        if self.status().is_completed:
            self._enter_certified()

    def _enter_certified(self) -> None:
        self._ticker.stop()
        self.state = SessionState.CERTIFIED
        if self._certified_this_session or self.video_id is None:
            return
        self._certified_this_session = True

        video_id = self.video_id
        self._certified_videos.set_certified(video_id, True)
        self.certified = True
        self._watch_counts.increment_watch_count(video_id)
        self._console.log(
            f"[green]Session:[/green] certified {video_id} after {self.watched_seconds}s "
            f"(duration={self.duration_seconds}s)"
        )

        event = CertificationCompletedEvent(
            video_id=video_id,
            user_id=self.user_id,
            completed_at=datetime.now(timezone.utc),
            watched_seconds=self.watched_seconds,
            liked=self.liked,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:  # noqa: BLE001 - listeners are external collaborators
                self._console.log(f"[red]Session:[/red] certification listener failed: {exc}")


__all__ = ["AsyncioTicker", "CertificationListener", "Ticker", "WatchSession"]
