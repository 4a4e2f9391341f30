"""
InnerTube /next response parser.

YouTube uses two record formats, and a single response can carry both:
  1. Legacy: commentRenderer inside commentThreadRenderer (or bare
     commentRenderer on reply pages), under onResponseReceivedEndpoints
  2. Entity: commentEntityPayload mutations in frameworkUpdates

Legacy records are read first. Entity records only add ids the legacy pass
did not produce, so overlapping records keep their legacy field values.
"""

import logging
from dataclasses import dataclass, field

from utils.common import _parse_count_string, dig, extract_count_from_label, parse_count, runs_text
from utils.schema import COMMENT, REPLY, Comment, VideoMetadata

logger = logging.getLogger(__name__)

HEARTED_STATE = "TOOLBAR_HEART_STATE_HEARTED"


@dataclass
class ParsedPage:
    comments: list[Comment] = field(default_factory=list)
    next_continuation: str | None = None
    # parent cid -> first reply-page token
    reply_continuations: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
#  Continuation pointers
# ---------------------------------------------------------------------------

def _continuation_from_item(cont_item: dict) -> str | None:
    """Token of a continuationItemRenderer, via its endpoint or its button."""
    for path in (
        ("continuationEndpoint", "continuationCommand", "token"),
        ("button", "buttonRenderer", "command", "continuationCommand", "token"),
    ):
        token = dig(cont_item, *path)
        if isinstance(token, str) and token:
            return token
    return None


def extract_reply_continuation(replies: dict | None) -> str | None:
    """First reply-page token of a thread's `replies` block."""
    renderer = dig(replies, "commentRepliesRenderer", default=None)
    if not isinstance(renderer, dict):
        return None

    contents = renderer.get("contents")
    for content in contents if isinstance(contents, list) else []:
        cont_item = dig(content, "continuationItemRenderer", default=None)
        if isinstance(cont_item, dict):
            token = _continuation_from_item(cont_item)
            if token:
                return token

    # Alternative: button-based reply continuation
    token = dig(
        renderer, "viewReplies", "buttonRenderer", "command",
        "continuationCommand", "token",
    )
    return token if isinstance(token, str) and token else None


# ---------------------------------------------------------------------------
#  Legacy commentRenderer
# ---------------------------------------------------------------------------

def parse_comment_renderer(
    raw: dict,
    metadata: VideoMetadata,
    kind: str = COMMENT,
    parent_cid: str | None = None,
) -> Comment | None:
    """Parse legacy commentRenderer format; None if id or author is missing."""
    if not isinstance(raw, dict):
        return None

    cid = raw.get("commentId")
    author = runs_text(raw.get("authorText"))
    if not isinstance(cid, str) or not cid or not author:
        return None

    vote_count = raw.get("voteCount")
    likes_text = runs_text(vote_count) if isinstance(vote_count, dict) else vote_count

    reply_count = raw.get("replyCount", 0)
    if isinstance(reply_count, dict):
        reply_count = 0

    return Comment.for_video(
        metadata,
        cid=cid,
        text=runs_text(raw.get("contentText")),
        author=author,
        vote_count=_parse_count_string(likes_text),
        reply_count=_parse_count_string(reply_count),
        is_author_owner=bool(raw.get("authorIsChannelOwner")),
        has_creator_heart=bool(
            dig(raw, "actionButtons", "commentActionButtonsRenderer", "creatorHeart")
        ),
        kind=kind,
        parent_cid=parent_cid,
        relative_date=runs_text(raw.get("publishedTimeText"), first_only=True),
    )


# ---------------------------------------------------------------------------
#  Entity commentEntityPayload
# ---------------------------------------------------------------------------

def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _entity_vote_count(toolbar: dict) -> int:
    count = extract_count_from_label(toolbar.get("likeCountA11y"))
    if count is None:
        count = parse_count(toolbar.get("likeCountNotliked"))
    return count or 0


def parse_entity_payload(
    entity: dict,
    metadata: VideoMetadata,
    kind: str = COMMENT,
    parent_cid: str | None = None,
) -> Comment | None:
    """Parse modern commentEntityPayload format; None if id or author is missing."""
    if not isinstance(entity, dict):
        return None

    props = _as_dict(entity.get("properties"))
    author = _as_dict(entity.get("author"))
    toolbar = _as_dict(entity.get("toolbar"))

    cid = props.get("commentId")
    author_name = author.get("displayName")
    if not isinstance(cid, str) or not cid or not isinstance(author_name, str) or not author_name:
        return None

    published = props.get("publishedTime")
    text = runs_text(props.get("content"))

    return Comment.for_video(
        metadata,
        cid=cid,
        text=text,
        author=author_name,
        vote_count=_entity_vote_count(toolbar),
        reply_count=_parse_count_string(toolbar.get("replyCount")),
        is_author_owner=bool(author.get("isCreator")),
        has_creator_heart=(
            toolbar.get("heartState") == HEARTED_STATE
            or bool(toolbar.get("creatorThumbnailUrl"))
        ),
        kind=kind,
        parent_cid=parent_cid,
        relative_date=published if isinstance(published, str) else "",
    )
def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _entity_payloads(data: dict):
    for mutation in _as_list(dig(data, "frameworkUpdates", "entityBatchUpdate", "mutations")):
        entity = dig(mutation, "payload", "commentEntityPayload", default=None)
        if isinstance(entity, dict):
            yield entity


def _is_nested_entity(entity: dict) -> bool:
    level = dig(entity, "properties", "replyLevel", default=0)
    try:
        return int(level or 0) > 0
    except (TypeError, ValueError):
        return False


# ---------------------------------------------------------------------------
#  Page parser
# ---------------------------------------------------------------------------

# Raised by a wrongly-typed node inside one record; that record is skipped.
RECORD_ERRORS = (AttributeError, TypeError, ValueError)


def _continuation_items(data: dict):
    for endpoint in _as_list(data.get("onResponseReceivedEndpoints")):
        if not isinstance(endpoint, dict):
            continue
        for wrapper in ("reloadContinuationItemsCommand", "appendContinuationItemsAction"):
            for item in _as_list(dig(endpoint, wrapper, "continuationItems")):
                if isinstance(item, dict):
                    yield item


def parse_comments_response(
    data: dict,
    metadata: VideoMetadata,
    parent_cid: str | None = None,
) -> ParsedPage:
    """Parse one InnerTube /next response into comments and continuations.

    With `parent_cid` set the page is a reply page: every record becomes a
    reply to that parent. A malformed record is skipped, never the page.
    """
    page = ParsedPage()
    if not isinstance(data, dict):
        return page

    kind = REPLY if parent_cid else COMMENT
    seen = set()

    def _add(comment):
        if comment and comment.cid not in seen:
            seen.add(comment.cid)
            page.comments.append(comment)

    def _read_item(item):
        thread = item.get("commentThreadRenderer")
        if isinstance(thread, dict):
            renderer = _as_dict(dig(thread, "comment", "commentRenderer"))
            _add(parse_comment_renderer(renderer, metadata, kind, parent_cid))

            reply_token = extract_reply_continuation(thread.get("replies"))
            if reply_token:
                thread_cid = (
                    renderer.get("commentId")
                    or dig(thread, "commentViewModel", "commentViewModel", "commentId")
                )
                if isinstance(thread_cid, str) and thread_cid not in page.reply_continuations:
                    page.reply_continuations[thread_cid] = reply_token

        renderer = item.get("commentRenderer")
        if isinstance(renderer, dict):
            _add(parse_comment_renderer(renderer, metadata, kind, parent_cid))

        cont_item = item.get("continuationItemRenderer")
        if isinstance(cont_item, dict):
            token = _continuation_from_item(cont_item)
            if token:
                page.next_continuation = token

    # Pass 1: legacy thread / renderer records + continuations
    for item in _continuation_items(data):
        try:
            _read_item(item)
        except RECORD_ERRORS as e:
            logger.debug("[%s] Skipping malformed record: %s", metadata.video_id, e)

    # Pass 2: entity records, additive only
    for entity in _entity_payloads(data):
        if not parent_cid and _is_nested_entity(entity):
            continue
        cid = dig(entity, "properties", "commentId")
        if not isinstance(cid, str) or not cid or cid in seen:
            continue
        try:
            _add(parse_entity_payload(entity, metadata, kind, parent_cid))
        except RECORD_ERRORS as e:
            logger.debug("[%s] Skipping malformed entity %s: %s", metadata.video_id, cid, e)

    logger.debug(
        "[%s] parsed %d %s(s), next=%s, reply tokens=%d",
        metadata.video_id, len(page.comments), kind,
        bool(page.next_continuation), len(page.reply_continuations),
    )
    return page
