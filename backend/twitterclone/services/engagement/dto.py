# twitterclone/services/engagement/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from twitterclone.models.post import Post, PostKind


@dataclass(frozen=True, slots=True)
class PostCreateIn:
    """
    Input DTO for creating a post.

    :param text: Body, 1 to 280 characters.
    :param kind: ``ORIGINAL`` or ``REPLY``.
    :param parent_id: Post replied to; required iff ``kind`` is ``REPLY``.
    """

    text: str
    kind: PostKind = PostKind.ORIGINAL
    parent_id: int | None = None


@dataclass(frozen=True, slots=True)
class PostOut:
    """Post projection carrying author display fields and the three counters."""

    id: int
    first_name: str
    last_name: str
    username: str
    profile_picture_path: str
    text: str
    kind: PostKind
    parent_id: int | None
    created_at: datetime
    reply_count: int
    retweet_count: int
    like_count: int

    @classmethod
    def from_model(cls, post: Post) -> PostOut:
        author = post.author
        return cls(
            id=post.id,
            first_name=author.first_name,
            last_name=author.last_name,
            username=author.username,
            profile_picture_path=author.profile_picture_path,
            text=post.text,
            kind=post.kind,
            parent_id=post.parent_id,
            created_at=post.created_at,
            reply_count=post.reply_count,
            retweet_count=post.retweet_count,
            like_count=post.like_count,
        )


@dataclass(frozen=True, slots=True)
class ToggleOut:
    """
    Outcome of a toggle.

    :param state: ``LIKED``/``UNLIKED``, ``RETWEETED``/``UNRETWEETED`` or
        ``BOOKMARKED``/``UNBOOKMARKED``.
    :param active: Whether the relation row exists after the toggle.
    :param count: New counter value, ``None`` for relations without one.
    """

    state: str
    active: bool
    count: int | None = None
