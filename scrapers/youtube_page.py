"""
Watch-page bootstrap. Pull ytInitialData out of the landing page HTML and
read the title, declared comment count, disabled flag and first comments
continuation token from it.

Each field is read through an ordered list of extractor functions; the first
one that returns something wins.
"""

import json
import re
from dataclasses import dataclass

from utils.common import dig, parse_count, runs_text
from utils.schema import VideoMetadata
from utils.url import CANONICAL_WATCH_URL

# Markup differs between page layouts; all three carry the same document.
INITIAL_DATA_PATTERNS = [
    re.compile(r"var\s+ytInitialData\s*=\s*(\{.+?\});\s*</script>", re.DOTALL),
    re.compile(r'window\["ytInitialData"\]\s*=\s*(\{.+?\});\s*(?:window\[|var\s|</script>)', re.DOTALL),
    re.compile(r"ytInitialData\s*=\s*(\{.+?\});\s*(?:var\s|</script>)", re.DOTALL),
]

DISABLED_PHRASES = (
    "comments are turned off",
    "comments disabled",
    "comments have been disabled",
)

COMMENTS_PANEL_HINT = "comment"


def extract_initial_data(html: str) -> dict | None:
    """Return the parsed ytInitialData document, or None if no pattern parses."""
    if not html:
        return None

    for pattern in INITIAL_DATA_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


# ---------------------------------------------------------------------------
#  Document walkers
# ---------------------------------------------------------------------------

def _list_at(obj, *path) -> list:
    value = dig(obj, *path, default=None)
    return value if isinstance(value, list) else []


def _watch_results(initial_data: dict) -> list:
    """contents.twoColumnWatchNextResults.results.results.contents"""
    return _list_at(
        initial_data, "contents", "twoColumnWatchNextResults",
        "results", "results", "contents",
    )


def _section_items(initial_data: dict):
    """Yield every item nested under an itemSectionRenderer in the results column."""
    for item in _watch_results(initial_data):
        for content in _list_at(item, "itemSectionRenderer", "contents"):
            if isinstance(content, dict):
                yield content


def _comment_panels(initial_data: dict):
    """Yield engagementPanelSectionListRenderer dicts that may hold comments."""
    for panel in _list_at(initial_data, "engagementPanels"):
        renderer = dig(panel, "engagementPanelSectionListRenderer", default=None)
        if not isinstance(renderer, dict):
            continue
        identifier = renderer.get("panelIdentifier") or renderer.get("targetId") or ""
        if not isinstance(identifier, str):
            continue
        if identifier and COMMENTS_PANEL_HINT not in identifier.lower():
            continue
        yield renderer


def _panel_items(panel: dict):
    for section in _list_at(panel, "content", "sectionListRenderer", "contents"):
        for inner in _list_at(section, "itemSectionRenderer", "contents"):
            if isinstance(inner, dict):
                yield inner


def _continuation_token(item: dict) -> str | None:
    token = dig(
        item, "continuationItemRenderer", "continuationEndpoint",
        "continuationCommand", "token",
    )
    return token if isinstance(token, str) and token else None


# ---------------------------------------------------------------------------
#  Title
# ---------------------------------------------------------------------------

def _title_from_primary_info(initial_data: dict) -> str:
    for item in _watch_results(initial_data):
        title = dig(item, "videoPrimaryInfoRenderer", "title")
        text = runs_text(title)
        if text:
            return text
    return ""


def _title_from_video_details(initial_data: dict) -> str:
    title = dig(initial_data, "videoDetails", "title", default="")
    return title if isinstance(title, str) else ""


def _title_from_player_overlay(initial_data: dict) -> str:
    info = dig(initial_data, "playerOverlays", "playerOverlayRenderer", "videoInfo")
    return runs_text(info, first_only=True)


TITLE_EXTRACTORS = [
    _title_from_primary_info,
    _title_from_video_details,
    _title_from_player_overlay,
]


def extract_video_title(initial_data: dict) -> str:
    """Extract video title from ytInitialData."""
    for extractor in TITLE_EXTRACTORS:
        title = extractor(initial_data)
        if title:
            return title
    return ""


# ---------------------------------------------------------------------------
#  Declared comment count
# ---------------------------------------------------------------------------

def _count_from_entry_point(initial_data: dict) -> int | None:
    for content in _section_items(initial_data):
        header = content.get("commentsEntryPointHeaderRenderer")
        if isinstance(header, dict):
            text = runs_text(header.get("commentCount"))
            if text:
                return parse_count(text)
    return None


def _count_from_panel_header(initial_data: dict) -> int | None:
    for panel in _comment_panels(initial_data):
        info = dig(panel, "header", "engagementPanelTitleHeaderRenderer", "contextualInfo")
        text = runs_text(info, first_only=True)
        if text:
            count = parse_count(text)
            if count is not None:
                return count
    return None


COUNT_EXTRACTORS = [
    _count_from_entry_point,
    _count_from_panel_header,
]


def extract_comments_count(initial_data: dict) -> int | None:
    """Declared total comment count, or None when the page does not show one."""
    for extractor in COUNT_EXTRACTORS:
        count = extractor(initial_data)
        if count is not None:
            return count
    return None


# ---------------------------------------------------------------------------
#  First comments continuation token
# ---------------------------------------------------------------------------

def _token_from_engagement_panel(initial_data: dict) -> str | None:
    for panel in _comment_panels(initial_data):
        for inner in _panel_items(panel):
            token = _continuation_token(inner)
            if token:
                return token
    return None


def _token_from_watch_results(initial_data: dict) -> str | None:
    for item in _watch_results(initial_data):
        section = dig(item, "itemSectionRenderer", default={})
        if not isinstance(section, dict):
            continue

        for content in _list_at(section, "contents"):
            if isinstance(content, dict):
                token = _continuation_token(content)
                if token:
                    return token

        # Older layout: continuations[0].nextContinuationData.continuation
        if section.get("sectionIdentifier") == "comment-item-section":
            token = dig(section, "continuations", 0, "nextContinuationData", "continuation")
            if isinstance(token, str) and token:
                return token
    return None


# Panels first: newer layouts move the token there and can leave a stale one
# in the results column.
TOKEN_EXTRACTORS = [
    _token_from_engagement_panel,
    _token_from_watch_results,
]


def find_comments_continuation(initial_data: dict) -> str | None:
    """Navigate ytInitialData JSON to find the comments continuation token."""
    for extractor in TOKEN_EXTRACTORS:
        token = extractor(initial_data)
        if token:
            return token
    return None


# ---------------------------------------------------------------------------
#  Disabled comments
# ---------------------------------------------------------------------------

def _is_disabled_message(content: dict) -> bool:
    message = runs_text(dig(content, "messageRenderer", "text")).lower()
    return any(phrase in message for phrase in DISABLED_PHRASES)


def are_comments_disabled(initial_data: dict) -> bool:
    """True if the page shows a "Comments are turned off" style message."""
    for content in _section_items(initial_data):
        if _is_disabled_message(content):
            return True
    for panel in _comment_panels(initial_data):
        for inner in _panel_items(panel):
            if _is_disabled_message(inner):
                return True
    return False


# ---------------------------------------------------------------------------
#  Bundle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageBootstrap:
    metadata: VideoMetadata
    continuation: str | None
    comments_disabled: bool


def empty_metadata(video_id: str, original_url: str) -> VideoMetadata:
    """Metadata for a video whose page could not be read."""
    return VideoMetadata(
        video_id=video_id,
        original_url=original_url,
        canonical_url=CANONICAL_WATCH_URL.format(video_id=video_id),
    )


def bootstrap_from_html(html: str, video_id: str, original_url: str) -> PageBootstrap | None:
    """Read metadata + first token from a watch page; None if ytInitialData is missing."""
    initial_data = extract_initial_data(html)
    if initial_data is None:
        return None

    metadata = VideoMetadata(
        video_id=video_id,
        original_url=original_url,
        canonical_url=CANONICAL_WATCH_URL.format(video_id=video_id),
        title=extract_video_title(initial_data),
        total_comments_count=extract_comments_count(initial_data),
    )
    return PageBootstrap(
        metadata=metadata,
        continuation=find_comments_continuation(initial_data),
        comments_disabled=are_comments_disabled(initial_data),
    )
