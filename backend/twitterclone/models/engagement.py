"""Per-user engagement relations: likes, retweets and bookmarks.

Each relation holds at most one row per ``(user_id, post_id)``; the unique
constraint is the store-level guard behind the toggle semantics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, relationship

from twitterclone.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin, UserPostLinkMixin

if TYPE_CHECKING:
    from .post import Post
    from .user import User


class Like(PKMixin, ReprMixin, CreatedAtMixin, UserPostLinkMixin, db.Model):
    """A user liking a post. Drives ``Post.like_count``."""

    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),)

    user: Mapped[User] = relationship()
    post: Mapped[Post] = relationship(back_populates="likes")


class Retweet(PKMixin, ReprMixin, CreatedAtMixin, UserPostLinkMixin, db.Model):
    """A user retweeting a post. Drives ``Post.retweet_count``."""

    __tablename__ = "retweets"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_retweets_user_post"),)

    user: Mapped[User] = relationship()
    post: Mapped[Post] = relationship(back_populates="retweets")


class Bookmark(PKMixin, ReprMixin, CreatedAtMixin, UserPostLinkMixin, db.Model):
    """A private bookmark. Touches no counter."""

    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_bookmarks_user_post"),)

    user: Mapped[User] = relationship()
    post: Mapped[Post] = relationship(back_populates="bookmarks")
