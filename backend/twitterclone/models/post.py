"""Post model: root posts and replies with denormalized engagement counters."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from twitterclone.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:
    from .engagement import Bookmark, Like, Retweet
    from .user import User

MAX_TEXT_LENGTH = 280


class PostKind(str, enum.Enum):
    """Discriminant between a root post and a reply to another post."""

    ORIGINAL = "ORIGINAL"
    REPLY = "REPLY"


class Post(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    A root post or a reply.

    ``parent_id`` is set iff ``kind`` is ``REPLY``; both rules are enforced by
    check constraints. The three counters are owned by the engagement
    service and only ever change through
    :meth:`twitterclone.repositories.post.PostRepository.adjust_counter`.
    """

    __tablename__ = "posts"

    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(String(MAX_TEXT_LENGTH), nullable=False)
    kind: Mapped[PostKind] = mapped_column(
        Enum(PostKind, name="post_kind", native_enum=False, length=16),
        nullable=False,
        default=PostKind.ORIGINAL,
        index=True,
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True
    )

    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    retweet_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    author: Mapped[User] = relationship(back_populates="posts")
    parent: Mapped[Post | None] = relationship(
        back_populates="replies", remote_side="Post.id"
    )
    replies: Mapped[list[Post]] = relationship(
        back_populates="parent", cascade="all, delete-orphan"
    )
    likes: Mapped[list[Like]] = relationship(back_populates="post", cascade="all, delete-orphan")
    retweets: Mapped[list[Retweet]] = relationship(
        back_populates="post", cascade="all, delete-orphan"
    )
    bookmarks: Mapped[list[Bookmark]] = relationship(
        back_populates="post", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "(kind = 'REPLY' AND parent_id IS NOT NULL) "
            "OR (kind = 'ORIGINAL' AND parent_id IS NULL)",
            name="parent_matches_kind",
        ),
        CheckConstraint("reply_count >= 0", name="reply_count_non_negative"),
        CheckConstraint("retweet_count >= 0", name="retweet_count_non_negative"),
        CheckConstraint("like_count >= 0", name="like_count_non_negative"),
    )

    @validates("text")
    def _validate_text(self, key: str, value: str) -> str:
        """Reject blank text and text longer than :data:`MAX_TEXT_LENGTH`."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Post text is required.")
        if len(value) > MAX_TEXT_LENGTH:
            raise ValueError(f"Post text exceeds {MAX_TEXT_LENGTH} characters.")
        return value
