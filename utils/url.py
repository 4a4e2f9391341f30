"""
URL validation and normalization for YouTube video links.
"""

import re
from dataclasses import dataclass

CANONICAL_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_ID = r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
_HOST = r"^https?://(?:www\.|m\.)?"

# Checked in order; each pattern captures the 11-char video id.
YOUTUBE_PATTERNS = [
    # https://www.youtube.com/watch?v=VIDEO_ID (v may be any query param)
    re.compile(_HOST + r"youtube\.com/watch\?(?:[^#]*&)?v=" + _ID, re.IGNORECASE),
    # https://youtu.be/VIDEO_ID
    re.compile(r"^https?://youtu\.be/" + _ID, re.IGNORECASE),
    # https://www.youtube.com/shorts/VIDEO_ID
    re.compile(_HOST + r"youtube\.com/shorts/" + _ID, re.IGNORECASE),
    # https://www.youtube.com/embed/VIDEO_ID
    re.compile(_HOST + r"youtube\.com/embed/" + _ID, re.IGNORECASE),
]

_YOUTUBE_HOST_RE = re.compile(r"^https?://(?:www\.|m\.)?(?:youtube\.com|youtu\.be)(?:[/?#]|$)", re.IGNORECASE)


@dataclass(frozen=True)
class UrlValidationResult:
    is_valid: bool
    video_id: str | None = None
    canonical_url: str | None = None
    error: str | None = None


def extract_video_id(url: str) -> str | None:
    """Extract the video ID from a YouTube URL.

    Supports formats:
      https://www.youtube.com/watch?v=VIDEO_ID
      https://youtu.be/VIDEO_ID
      https://www.youtube.com/shorts/VIDEO_ID
      https://www.youtube.com/embed/VIDEO_ID
    """
    if not url or not isinstance(url, str):
        return None

    url = url.strip()
    for pattern in YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def validate_youtube_url(url) -> UrlValidationResult:
    """Validate a YouTube URL and normalize it to the watch?v= form."""
    if not url or not isinstance(url, str):
        return UrlValidationResult(
            is_valid=False,
            error="URL is required and must be a string",
        )

    trimmed = url.strip()

    if not _YOUTUBE_HOST_RE.search(trimmed):
        return UrlValidationResult(
            is_valid=False,
            error=(
                f"Invalid YouTube URL: {trimmed}. "
                "Expected format: youtube.com/watch?v=... or youtu.be/..."
            ),
        )

    video_id = extract_video_id(trimmed)
    if not video_id:
        return UrlValidationResult(
            is_valid=False,
            error=(
                f"Could not extract video ID from URL: {trimmed}. "
                "Expected format: youtube.com/watch?v=VIDEO_ID"
            ),
        )

    return UrlValidationResult(
        is_valid=True,
        video_id=video_id,
        canonical_url=CANONICAL_WATCH_URL.format(video_id=video_id),
    )


def is_valid_youtube_url(url) -> bool:
    return validate_youtube_url(url).is_valid


def normalize_youtube_url(url) -> str | None:
    """Normalize a YouTube URL to standard watch?v= format (None if invalid)."""
    return validate_youtube_url(url).canonical_url


def validate_urls(urls) -> tuple[list[dict], list[dict]]:
    """Split URLs into (valid, invalid), preserving input order.

    valid:   [{"url", "video_id", "canonical_url"}, ...]
    invalid: [{"url", "error"}, ...]
    """
    valid = []
    invalid = []
    for url in urls or []:
        result = validate_youtube_url(url)
        if result.is_valid:
            valid.append({
                "url": url,
                "video_id": result.video_id,
                "canonical_url": result.canonical_url,
            })
        else:
            invalid.append({
                "url": url,
                "error": result.error or "Unknown validation error",
            })
    return valid, invalid
