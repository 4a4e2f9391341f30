"""
Comment and video records, plus the flat output schema they are exported as.
"""

from dataclasses import dataclass

COMMENT = "comment"
REPLY = "reply"

# Output schema field -> expected python type(s)
OUTPUT_FIELDS = {
    "cid": str,
    "comment": str,
    "author": str,
    "videoId": str,
    "pageUrl": str,
    "title": str,
    "commentsCount": int,
    "voteCount": int,
    "replyCount": int,
    "authorIsChannelOwner": bool,
    "hasCreatorHeart": bool,
    "type": str,
    "replyToCid": (str, type(None)),
    "date": str,
}


@dataclass(frozen=True)
class VideoMetadata:
    video_id: str
    original_url: str
    canonical_url: str
    title: str = ""
    total_comments_count: int | None = None


@dataclass
class Comment:
    cid: str
    text: str
    author: str
    video_id: str
    page_url: str
    title: str = ""
    total_comments_count: int | None = None
    vote_count: int = 0
    reply_count: int = 0
    is_author_owner: bool = False
    has_creator_heart: bool = False
    kind: str = COMMENT
    parent_cid: str | None = None
    relative_date: str = ""

    @classmethod
    def for_video(cls, metadata: VideoMetadata, **fields) -> "Comment":
        """Build a comment stamped with the video's metadata."""
        return cls(
            video_id=metadata.video_id,
            page_url=metadata.canonical_url,
            title=metadata.title,
            total_comments_count=metadata.total_comments_count,
            **fields,
        )

    @property
    def is_reply(self) -> bool:
        return self.kind == REPLY

    def to_dict(self) -> dict:
        return {
            "cid": self.cid,
            "comment": self.text,
            "author": self.author,
            "videoId": self.video_id,
            "pageUrl": self.page_url,
            "title": self.title,
            "commentsCount": self.total_comments_count or 0,
            "voteCount": self.vote_count,
            "replyCount": self.reply_count,
            "authorIsChannelOwner": self.is_author_owner,
            "hasCreatorHeart": self.has_creator_heart,
            "type": self.kind,
            "replyToCid": self.parent_cid,
            "date": self.relative_date,
        }


def validate_comment_output(record: dict) -> bool:
    """Check an exported record has every output field with the right type."""
    if not isinstance(record, dict):
        return False

    for name, expected in OUTPUT_FIELDS.items():
        if name not in record:
            return False
        value = record[name]
        # bool is an int subclass; counts must be real ints
        if expected is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected):
            return False

    for required in ("cid", "author", "videoId", "pageUrl"):
        if not record[required]:
            return False

    if record["type"] not in (COMMENT, REPLY):
        return False
    if record["type"] == REPLY and not record["replyToCid"]:
        return False
    return True
