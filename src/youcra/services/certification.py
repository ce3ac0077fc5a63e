"""Certification rules: how much of a video must be watched to certify it."""

from __future__ import annotations

from youcra.models.watch import CertificationStatus, VideoCategory
from youcra.utils.time_format import format_seconds

LONG_VIDEO_THRESHOLD_SECONDS = 1800


def classify_video(duration_seconds: int, *, threshold_seconds: int = LONG_VIDEO_THRESHOLD_SECONDS) -> VideoCategory:
    """Return :attr:`VideoCategory.LONG` for videos longer than the threshold."""

    return VideoCategory.LONG if duration_seconds > threshold_seconds else VideoCategory.SHORT


def get_certification_status(
    duration_seconds: int,
    watched_seconds: int,
    video_ended: bool,
    *,
    threshold_seconds: int = LONG_VIDEO_THRESHOLD_SECONDS,
) -> CertificationStatus:
    """Compute certification progress for a single viewing.

    Long videos certify once ``threshold_seconds`` have been watched, whatever
    their real length. Short videos (including unknown length ``0``) certify
    only when the player reports the video ended.
    """

    watched = max(0, watched_seconds)
    if classify_video(duration_seconds, threshold_seconds=threshold_seconds) is VideoCategory.LONG:
        required = threshold_seconds
        return CertificationStatus(
            message=(
                f"Watch {format_seconds(required)} to certify "
                f"({format_seconds(watched)}/{format_seconds(required)}, long video)"
            ),
            progress_percent=min(100.0, watched / required * 100),
            is_completed=watched >= required,
            required_seconds=required,
        )

    required = max(0, duration_seconds)
    progress = min(100.0, watched / required * 100) if required > 0 else 0.0
    return CertificationStatus(
        message=(
            "Watch to the end to certify "
            f"({format_seconds(watched)}/{format_seconds(required)}, short video)"
        ),
        progress_percent=progress,
        is_completed=bool(video_ended),
        required_seconds=required,
    )


def remaining_seconds(
    duration_seconds: int,
    watched_seconds: int,
    video_ended: bool,
    *,
    threshold_seconds: int = LONG_VIDEO_THRESHOLD_SECONDS,
) -> int:
    """Seconds still to watch before certification, ``0`` once complete."""

    if classify_video(duration_seconds, threshold_seconds=threshold_seconds) is VideoCategory.LONG:
        return max(0, threshold_seconds - watched_seconds)
    if video_ended:
        return 0
    return max(0, duration_seconds - watched_seconds)


__all__ = [
    "LONG_VIDEO_THRESHOLD_SECONDS",
    "classify_video",
    "get_certification_status",
    "remaining_seconds",
]
