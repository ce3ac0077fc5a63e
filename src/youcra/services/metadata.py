"""Video metadata lookup via the YouTube Data API with a yt-dlp fallback."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx
import yt_dlp
from pydantic import ValidationError
from rich.console import Console
from yt_dlp.utils import DownloadError

from youcra.config.settings import Settings, get_settings
from youcra.models.video import VideoMetadata
from youcra.utils.time_format import encode_iso8601_duration, seconds_from_duration_value
from youcra.utils.validation import extract_video_id

YOUTUBE_VIDEOS_ENDPOINT = "https://www.googleapis.com/youtube/v3/videos"
THUMBNAIL_FALLBACK_TEMPLATE = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"

# Raised by the normalisers when a provider payload has an unexpected shape.
_NORMALISATION_ERRORS = (ValidationError, AttributeError, TypeError, ValueError)


class MetadataFetchError(RuntimeError):
    """Raised when the metadata provider is unreachable or returns an error."""


def _as_count(value: object) -> int:
    try:
        return max(0, int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


def default_metadata(video_id: str) -> VideoMetadata:
    """Metadata used when the provider cannot be reached: unknown length."""

    return VideoMetadata(
        video_id=video_id,
        thumbnail_url=THUMBNAIL_FALLBACK_TEMPLATE.format(video_id=video_id),
    )


def metadata_from_api_item(item: Mapping[str, Any]) -> VideoMetadata:
    """Normalise a ``videos.list`` item from the YouTube Data API v3."""

    video_id = str(item.get("id") or "")
    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    statistics = item.get("statistics") or {}
    thumbnails = snippet.get("thumbnails") or {}

    thumbnail_url = ""
    for size in ("medium", "high", "default"):
        candidate = thumbnails.get(size) or {}
        if candidate.get("url"):
            thumbnail_url = str(candidate["url"])
            break

    duration_encoded = str(content_details.get("duration") or "PT0S")
    return VideoMetadata(
        video_id=video_id,
        title=str(snippet.get("title") or ""),
        channel_title=str(snippet.get("channelTitle") or ""),
        thumbnail_url=thumbnail_url or THUMBNAIL_FALLBACK_TEMPLATE.format(video_id=video_id),
        duration_encoded=duration_encoded,
        duration_seconds=seconds_from_duration_value(duration_encoded),
        view_count=_as_count(statistics.get("viewCount")),
        like_count=_as_count(statistics.get("likeCount")),
    )


def metadata_from_ytdlp_info(info: Mapping[str, Any], video_id: str) -> VideoMetadata:
    """Normalise a ``yt-dlp`` info dictionary."""

    resolved_id = str(info.get("id") or video_id)
    duration_seconds = seconds_from_duration_value(info.get("duration"))
    return VideoMetadata(
        video_id=resolved_id,
        title=str(info.get("title") or ""),
        channel_title=str(info.get("channel") or info.get("uploader") or ""),
        thumbnail_url=str(info.get("thumbnail") or THUMBNAIL_FALLBACK_TEMPLATE.format(video_id=resolved_id)),
        duration_encoded=encode_iso8601_duration(duration_seconds),
        duration_seconds=duration_seconds,
        view_count=_as_count(info.get("view_count")),
        like_count=_as_count(info.get("like_count")),
    )


class MetadataService:
    """Fetch and normalise metadata for a single video.

    The YouTube Data API is used when ``YOUTUBE_API_KEY`` is configured;
    otherwise metadata is extracted with ``yt-dlp`` without downloading media.
    Both paths honour the configured timeout.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._http_client = http_client

    def fetch_metadata(self, video_id: str, *, timeout: Optional[float] = None) -> VideoMetadata:
        """Return metadata for ``video_id``.

        Raises
        ------
        youcra.utils.validation.InvalidVideoIdError
            If ``video_id`` is not a usable identifier.
        MetadataFetchError
            If the provider fails or does not know the video.
        """

        canonical_id = extract_video_id(video_id)
        effective_timeout = timeout if timeout is not None else self._settings.metadata_timeout_seconds

        if self._settings.youtube_api_key is not None:
            return self._fetch_from_api(canonical_id, effective_timeout)
        return self._fetch_with_ytdlp(canonical_id, effective_timeout)

    def fetch_metadata_or_default(self, video_id: str, *, timeout: Optional[float] = None) -> VideoMetadata:
        """Like :meth:`fetch_metadata`, falling back to zero-duration metadata on failure."""

        try:
            return self.fetch_metadata(video_id, timeout=timeout)
        except MetadataFetchError as exc:
            self._console.log(f"[yellow]Metadata unavailable:[/yellow] {exc}; using duration 0:00")
            return default_metadata(video_id)

    # ------------------------------------------------------------------ #
    # Providers                                                          #
    # ------------------------------------------------------------------ #
    def _fetch_from_api(self, video_id: str, timeout: float) -> VideoMetadata:
        api_key = self._settings.youtube_api_key
        if api_key is None:
            raise MetadataFetchError("YOUTUBE_API_KEY is not configured")
        params = {
            "part": "snippet,contentDetails,statistics",
            "id": video_id,
            "key": api_key.get_secret_value(),
        }

        self._console.log(f"Fetching metadata from the YouTube Data API (video_id={video_id})")
        try:
            if self._http_client is not None:
                response = self._http_client.get(YOUTUBE_VIDEOS_ENDPOINT, params=params, timeout=timeout)
            else:
                with httpx.Client() as client:
                    response = client.get(YOUTUBE_VIDEOS_ENDPOINT, params=params, timeout=timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise MetadataFetchError(f"YouTube Data API timed out after {timeout:.1f}s") from exc
        except httpx.HTTPStatusError as exc:
            raise MetadataFetchError(f"YouTube Data API returned HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise MetadataFetchError(f"YouTube Data API request failed: {exc}") from exc

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise MetadataFetchError("YouTube Data API response has no item list")
        if not items:
            raise MetadataFetchError(f"Video {video_id!r} not found")
        try:
            return metadata_from_api_item(items[0])
        except _NORMALISATION_ERRORS as exc:
            raise MetadataFetchError(f"YouTube Data API returned a malformed item for {video_id!r}") from exc

    def _fetch_with_ytdlp(self, video_id: str, timeout: float) -> VideoMetadata:
        self._console.log(f"Extracting metadata via yt-dlp (video_id={video_id})")
        url = f"https://www.youtube.com/watch?v={video_id}"
        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "socket_timeout": timeout,
        }
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except DownloadError as exc:
            raise MetadataFetchError(f"yt-dlp could not read {video_id!r}: {exc}") from exc

        if not info:
            raise MetadataFetchError(f"yt-dlp returned no metadata for {video_id!r}")
        try:
            return metadata_from_ytdlp_info(info, video_id)
        except _NORMALISATION_ERRORS as exc:
            raise MetadataFetchError(f"yt-dlp returned malformed metadata for {video_id!r}") from exc


__all__ = [
    "MetadataFetchError",
    "MetadataService",
    "default_metadata",
    "metadata_from_api_item",
    "metadata_from_ytdlp_info",
]
