"""Tests for certification progress rules."""

import pytest

from youcra.models.watch import VideoCategory
from youcra.services.certification import classify_video, get_certification_status, remaining_seconds


class TestLongVideos:
    def test_threshold_reached_before_end(self):
        status = get_certification_status(1801, 1800, False)

        assert status.is_completed is True
        assert status.progress_percent == 100
        assert status.required_seconds == 1800

    def test_progress_against_fixed_threshold(self):
        status = get_certification_status(7200, 900, False)

        assert status.is_completed is False
        assert status.progress_percent == pytest.approx(50.0)
        assert status.required_seconds == 1800
        assert "15:00/30:00" in status.message

    def test_ended_flag_does_not_complete_long_video(self):
        assert get_certification_status(3600, 60, True).is_completed is False

    def test_remaining(self):
        assert remaining_seconds(3600, 600, False) == 1200
        assert remaining_seconds(3600, 4000, False) == 0


class TestShortVideos:
    def test_ended_flag_wins_over_elapsed_time(self):
        status = get_certification_status(1800, 1799, True)

        assert status.is_completed is True
        assert status.required_seconds == 1800

    def test_watching_the_full_length_without_ended_is_incomplete(self):
        status = get_certification_status(300, 300, False)

        assert status.is_completed is False
        assert status.progress_percent == 100

    def test_progress_is_capped(self):
        assert get_certification_status(100, 250, False).progress_percent == 100

    def test_unknown_duration(self):
        status = get_certification_status(0, 42, False)

        assert status.progress_percent == 0
        assert status.required_seconds == 0
        assert status.is_completed is False
        assert get_certification_status(0, 42, True).is_completed is True

    def test_remaining(self):
        assert remaining_seconds(300, 120, False) == 180
        assert remaining_seconds(300, 120, True) == 0
        assert remaining_seconds(300, 400, False) == 0

    def test_message_embeds_formatted_times(self):
        status = get_certification_status(253, 65, False)
        assert "1:05/4:13" in status.message
        assert "short video" in status.message


def test_status_is_pure():
    first = get_certification_status(2000, 100, False)
    second = get_certification_status(2000, 100, False)
    assert first == second


@pytest.mark.parametrize(
    ("duration", "expected"),
    [(0, VideoCategory.SHORT), (1800, VideoCategory.SHORT), (1801, VideoCategory.LONG)],
)
def test_classify_video(duration, expected):
    assert classify_video(duration) is expected
