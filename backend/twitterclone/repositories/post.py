"""Post repository: filtered reads and atomic counter updates."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, case, select, update
from sqlalchemy.orm import joinedload

from twitterclone.models.post import Post, PostKind
from twitterclone.repositories.base import BaseRepository

COUNTER_COLUMNS = {
    "like_count": Post.like_count,
    "retweet_count": Post.retweet_count,
    "reply_count": Post.reply_count,
}


class PostRepository(BaseRepository[Post]):
    """Persistence-only repository for :class:`Post`.

    All listing methods return newest first and eager-load the author so the
    projection layer never triggers one query per row.
    """

    model = Post

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        return stmt.options(joinedload(Post.author))

    def get_for_update(self, entity_id: Any) -> Post | None:
        """Lock the post row only; the author join is left out of ``FOR UPDATE``."""
        stmt = select(Post).where(Post.id == entity_id).with_for_update()
        return self.session.execute(stmt).scalars().first()

    def _newest_first(self, stmt: Select[Any]) -> list[Post]:
        stmt = self._default_eagerload(stmt).order_by(Post.created_at.desc(), Post.id.desc())
        return list(self.session.execute(stmt).scalars().all())

    # ------------------------------- Listings --------------------------------

    def list_by_kind(self, kind: PostKind) -> list[Post]:
        """All posts of ``kind``."""
        return self._newest_first(select(Post).where(Post.kind == kind))

    def list_by_author(self, author_id: int, *, kind: PostKind | None = None) -> list[Post]:
        """Posts written by ``author_id``, optionally narrowed to one kind."""
        stmt = select(Post).where(Post.author_id == author_id)
        if kind is not None:
            stmt = stmt.where(Post.kind == kind)
        return self._newest_first(stmt)

    def list_replies_to(self, parent_id: int) -> list[Post]:
        """Direct replies to ``parent_id``."""
        return self._newest_first(select(Post).where(Post.parent_id == parent_id))

    def list_engaged_by(self, user_id: int, relation: type[Any]) -> list[Post]:
        """Posts ``user_id`` holds a ``relation`` row for (likes, retweets, bookmarks).

        :param user_id: Acting or target user id.
        :param relation: Engagement model joined on ``post_id``.
        """
        stmt = (
            select(Post)
            .join(relation, relation.post_id == Post.id)
            .where(relation.user_id == user_id)
        )
        return self._newest_first(stmt)

    # ------------------------------- Counters --------------------------------

    def adjust_counter(self, post_id: int, counter: str, delta: int) -> int | None:
        """Add ``delta`` to a counter in one ``UPDATE`` statement, floored at 0.

        The arithmetic happens in the database so concurrent writers never
        lose an update. Any loaded instance is expired so readers see the
        stored value.

        :param post_id: Target post.
        :param counter: One of ``like_count``, ``retweet_count``, ``reply_count``.
        :param delta: Signed increment.
        :returns: The new counter value, or ``None`` when the post is gone.
        :raises ValueError: If ``counter`` is not a known counter column.
        """
        column = COUNTER_COLUMNS.get(counter)
        if column is None:
            raise ValueError(f"Unknown counter column: {counter!r}")

        bumped = column + delta
        stmt = (
            update(Post)
            .where(Post.id == post_id)
            .values({column: case((bumped < 0, 0), else_=bumped)})
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            return None

        post = self.session.get(Post, post_id)
        if post is None:
            return None
        self.session.expire(post, [counter])
        return int(getattr(post, counter))
