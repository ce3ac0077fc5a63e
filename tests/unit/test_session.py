"""Tests for the watch session state machine."""

import asyncio
from unittest.mock import MagicMock

import pytest

from youcra.models.session import CertificationCompletedEvent, SessionState
from youcra.services.rewatch import RewatchCooldownError
from youcra.services.session import AsyncioTicker, WatchSession
from youcra.utils.validation import InvalidVideoIdError

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.fixture
def session(watch_counts, certified_videos, rewatch_policy, ticker, settings, console, listener):
    return WatchSession(
        watch_counts=watch_counts,
        certified_videos=certified_videos,
        rewatch_policy=rewatch_policy,
        ticker=ticker,
        settings=settings,
        console=console,
        user_id="user-1",
        listeners=[listener],
    )


def _start(session, *, duration_seconds, autoplay=True, video_id=VIDEO_ID):
    session.open(video_id, duration_seconds=duration_seconds, autoplay=autoplay)
    session.player_ready()


class TestTransitions:
    def test_open_enters_loading(self, session):
        session.open(VIDEO_ID, duration_seconds=120)

        assert session.state is SessionState.LOADING
        assert session.watched_seconds == 0
        assert session.certified is False

    def test_ready_without_autoplay_pauses(self, session, ticker):
        _start(session, duration_seconds=120, autoplay=False)

        assert session.state is SessionState.PAUSED
        assert ticker.running is False

    def test_ready_with_autoplay_plays(self, session, ticker):
        _start(session, duration_seconds=120)

        assert session.state is SessionState.PLAYING
        assert ticker.running is True

    def test_ready_can_supply_duration(self, session):
        session.open(VIDEO_ID)
        session.player_ready(duration_seconds=3000)
        assert session.duration_seconds == 3000

    def test_ticks_accumulate_only_while_playing(self, session, ticker):
        _start(session, duration_seconds=120)
        ticker.fire(5)
        session.pause()
        session.tick()

        assert session.watched_seconds == 5
        assert session.state is SessionState.PAUSED
        assert ticker.running is False

        session.play()
        ticker.fire(2)
        assert session.watched_seconds == 7

    def test_close_releases_ticker_from_any_state(self, session, ticker):
        _start(session, duration_seconds=120)
        session.close()

        assert session.state is SessionState.IDLE
        assert ticker.running is False
        assert session.video_id is None

    def test_context_manager_closes(self, session, ticker):
        with session:
            _start(session, duration_seconds=120)
            assert ticker.running is True
        assert ticker.running is False
        assert session.state is SessionState.IDLE

    def test_open_while_playing_switches_video(self, session, ticker):
        _start(session, duration_seconds=120)
        ticker.fire(3)
        session.open("9bZkp7q19f0", duration_seconds=60)

        assert session.state is SessionState.LOADING
        assert session.video_id == "9bZkp7q19f0"
        assert session.watched_seconds == 0
        assert ticker.running is False

    def test_open_rejects_placeholder_ids(self, session):
        with pytest.raises(InvalidVideoIdError):
            session.open("undefined")
        assert session.state is SessionState.IDLE

    def test_toggle_like(self, session):
        assert session.toggle_like() is True
        assert session.toggle_like() is False


class TestCertification:
    def test_long_video_certifies_at_threshold(self, session, ticker, watch_counts, certified_videos, listener):
        _start(session, duration_seconds=3600)
        ticker.fire(1799)
        assert session.state is SessionState.PLAYING

        ticker.fire(1)

        assert session.state is SessionState.CERTIFIED
        assert ticker.running is False
        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 1
        assert certified_videos.is_certified(VIDEO_ID) is True
        assert len(listener.events) == 1
        event = listener.events[0]
        assert isinstance(event, CertificationCompletedEvent)
        assert event.video_id == VIDEO_ID
        assert event.user_id == "user-1"
        assert event.watched_seconds == 1800

    def test_short_video_certifies_on_end(self, session, ticker, watch_counts):
        _start(session, duration_seconds=120)
        ticker.fire(119)
        assert session.state is SessionState.PLAYING

        session.on_ended()

        assert session.state is SessionState.CERTIFIED
        assert session.video_ended is True
        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 1

    def test_end_before_long_threshold_only_pauses(self, session, ticker, watch_counts):
        _start(session, duration_seconds=3600)
        ticker.fire(10)
        session.on_ended()

        assert session.state is SessionState.PAUSED
        assert ticker.running is False
        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 0

    def test_repeated_end_signals_increment_once(self, session, watch_counts, listener):
        store = MagicMock(wraps=watch_counts)
        session._watch_counts = store
        _start(session, duration_seconds=60)

        session.on_ended()
        session.on_ended()
        session.on_ended()
        session.on_ended()
        session.tick()

        assert session.state is SessionState.CERTIFIED
        assert store.increment_watch_count.call_count == 1
        assert len(listener.events) == 1

    def test_reopening_after_cooldown_counts_again(self, session, watch_counts, clock):
        _start(session, duration_seconds=60)
        session.on_ended()
        session.close()

        clock.advance(3_600_000)
        _start(session, duration_seconds=60)
        assert session.certified is True
        session.on_ended()

        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 2

    def test_open_inside_cooldown_is_refused(self, session, watch_counts, certified_videos, listener, clock):
        _start(session, duration_seconds=60)
        session.on_ended()
        session.close()

        clock.advance(60_000)
        with pytest.raises(RewatchCooldownError) as excinfo:
            session.open(VIDEO_ID, duration_seconds=60)

        assert excinfo.value.video_id == VIDEO_ID
        assert excinfo.value.minutes_remaining == 59
        assert session.state is SessionState.IDLE
        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 1
        assert certified_videos.is_certified(VIDEO_ID) is True
        assert len(listener.events) == 1

    def test_refused_open_keeps_current_viewing(self, session, ticker, clock):
        _start(session, duration_seconds=60)
        session.on_ended()
        _start(session, duration_seconds=300, video_id="9bZkp7q19f0")
        ticker.fire(4)

        clock.advance(60_000)
        with pytest.raises(RewatchCooldownError):
            session.open(VIDEO_ID, duration_seconds=60)

        assert session.video_id == "9bZkp7q19f0"
        assert session.state is SessionState.PLAYING
        assert session.watched_seconds == 4
        assert ticker.running is True

    def test_every_admitted_viewing_is_recorded(self, session, watch_counts, certified_videos, listener, clock):
        for _ in range(3):
            _start(session, duration_seconds=60)
            session.on_ended()
            session.close()
            clock.advance(3_600_000)

        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 3
        assert certified_videos.is_certified(VIDEO_ID) is True
        assert len(listener.events) == 3

    def test_failing_listener_does_not_break_session(self, session, watch_counts):
        def broken(event):
            raise RuntimeError("token service down")

        session.add_listener(broken)
        _start(session, duration_seconds=60)
        session.on_ended()

        assert session.state is SessionState.CERTIFIED
        assert watch_counts.get_watch_count(VIDEO_ID).watch_count == 1

    def test_status_and_remaining(self, session, ticker):
        _start(session, duration_seconds=300)
        ticker.fire(100)

        assert session.remaining_seconds() == 200
        assert session.status().progress_percent == pytest.approx(100 / 3)


class TestAsyncioTicker:
    def test_ticks_on_running_loop_and_stops(self):
        ticks = []

        async def scenario():
            ticker = AsyncioTicker(0.01)
            ticker.start(lambda: ticks.append(1))
            ticker.start(lambda: ticks.append(2))
            await asyncio.sleep(0.055)
            assert ticker.running is True
            ticker.stop()
            count = len(ticks)
            await asyncio.sleep(0.03)
            assert ticker.running is False
            return count

        count = asyncio.run(scenario())

        assert count >= 2
        assert len(ticks) == count
        assert set(ticks) == {1}

    def test_drives_a_session(self, watch_counts, certified_videos, rewatch_policy, settings, console):
        async def scenario():
            session = WatchSession(
                watch_counts=watch_counts,
                certified_videos=certified_videos,
                rewatch_policy=rewatch_policy,
                ticker=AsyncioTicker(0.005),
                settings=settings,
                console=console,
            )
            with session:
                session.open(VIDEO_ID, duration_seconds=2000, autoplay=True)
                session.player_ready()
                await asyncio.sleep(0.06)
                session.pause()
                return session.watched_seconds

        watched = asyncio.run(scenario())
        assert watched >= 2
