# twitterclone/services/engagement/service.py
from __future__ import annotations

import logging
from contextlib import AbstractContextManager, nullcontext

from sqlalchemy.exc import IntegrityError, OperationalError

from twitterclone.models.post import Post, PostKind
from twitterclone.services._shared.base import BaseService
from twitterclone.services._shared.errors import (
    ForbiddenError,
    InvalidPostError,
    NotFoundError,
    UnavailableError,
    UserNotFoundError,
)
from twitterclone.services._shared.locks import KeyedLock
from twitterclone.services.auth.dto import CurrentUser
from twitterclone.services.engagement.dto import PostCreateIn, PostOut, ToggleOut
from twitterclone.services.engagement.toggles import BOOKMARK, LIKE, RETWEET, ToggleRelation
from twitterclone.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


class EngagementService(BaseService):
    """
    Posts, replies and the like/retweet/bookmark toggles.

    Concurrency
    -----------
    * Toggles for one ``(kind, user, post)`` run one at a time inside this
      process (:class:`KeyedLock`), under a row lock on the post where the
      database supports it, and the relation's unique constraint rejects a
      duplicate row from any other process.
    * Counters change only through a single ``UPDATE`` computed by the
      database, so concurrent replies to one parent never lose an increment.
    """

    def __init__(
        self,
        *,
        locks: KeyedLock | None = None,
        counter_retry_attempts: int = 3,
    ) -> None:
        """
        :param locks: Shared per-key locks; one instance per process.
        :param counter_retry_attempts: Bounded retries for a counter ``UPDATE``
            failing with :class:`OperationalError` (lock timeout, deadlock).
        """
        self.locks = locks or KeyedLock()
        self.counter_retry_attempts = max(1, int(counter_retry_attempts))

    # ------------------------------------------------------------------ #
    # Posts
    # ------------------------------------------------------------------ #

    def create_post(self, author: CurrentUser, dto: PostCreateIn) -> PostOut:
        """
        Create a root post or a reply.

        A reply and its parent's ``reply_count`` increment commit together.

        :raises InvalidPostError: If a reply has no parent or a root post has one.
        :raises NotFoundError: If a reply's parent does not exist.
        """
        if dto.kind is PostKind.REPLY and dto.parent_id is None:
            raise InvalidPostError("A reply needs a parent post")
        if dto.kind is PostKind.ORIGINAL and dto.parent_id is not None:
            raise InvalidPostError("Only replies carry a parent post")

        with self.rw_uow() as uow:
            parent_id: int | None = None
            if dto.kind is PostKind.REPLY:
                parent = uow.posts.get(dto.parent_id)
                if parent is None:
                    raise NotFoundError("Post", dto.parent_id)
                parent_id = parent.id

            post = uow.posts.add(
                Post(author_id=author.id, text=dto.text, kind=dto.kind, parent_id=parent_id)
            )
            if parent_id is not None:
                self._adjust_counter(uow, parent_id, "reply_count", +1)
            return PostOut.from_model(post)

    def delete_post(self, actor: CurrentUser, post_id: int) -> None:
        """
        Delete a post with its replies and engagement rows.

        Deleting a reply decrements its parent's ``reply_count``.

        :raises NotFoundError: If the post does not exist.
        :raises ForbiddenError: If ``actor`` is not the author.
        """
        with self.rw_uow() as uow:
            post = uow.posts.get_for_update(post_id)
            if post is None:
                raise NotFoundError("Post", post_id)
            if post.author_id != actor.id:
                raise ForbiddenError()

            parent_id = post.parent_id
            uow.posts.delete(post)
            if parent_id is not None:
                self._adjust_counter(uow, parent_id, "reply_count", -1)

        log.info("engagement.post.deleted", extra={"post_id": post_id})

    # ------------------------------------------------------------------ #
    # Toggles
    # ------------------------------------------------------------------ #

    def toggle_like(self, user: CurrentUser, post_id: int) -> ToggleOut:
        return self._toggle(LIKE, user, post_id)

    def toggle_retweet(self, user: CurrentUser, post_id: int) -> ToggleOut:
        return self._toggle(RETWEET, user, post_id)

    def toggle_bookmark(self, user: CurrentUser, post_id: int) -> ToggleOut:
        return self._toggle(BOOKMARK, user, post_id)

    def _toggle(self, relation: ToggleRelation, user: CurrentUser, post_id: int) -> ToggleOut:
        """
        Flip ``relation`` for ``(user, post)`` and move its counter by one.

        :raises NotFoundError: If the post does not exist.
        :raises UnavailableError: If another process won a race on the same
            pair; the caller may retry.
        """
        with self.locks.hold((relation.kind, user.id, post_id)):
            try:
                with self.rw_uow() as uow:
                    if uow.posts.get_for_update(post_id) is None:
                        raise NotFoundError("Post", post_id)

                    repo = getattr(uow, relation.repository)
                    existing = repo.find(user.id, post_id)
                    if existing is None:
                        repo.create(user.id, post_id)
                        active, delta = True, +1
                    else:
                        repo.delete(existing)
                        active, delta = False, -1

                    count = None
                    if relation.counter is not None:
                        count = self._adjust_counter(uow, post_id, relation.counter, delta)
            except IntegrityError as exc:
                raise UnavailableError("Concurrent update on the same post; retry") from exc

        out = ToggleOut(state=relation.state(active), active=active, count=count)
        log.info(
            "engagement.toggle",
            extra={"kind": relation.kind, "post_id": post_id, "state": out.state},
        )
        return out

    # ------------------------------------------------------------------ #
    # Counters
    # ------------------------------------------------------------------ #

    def _savepoint(self, uow: SQLAlchemyUnitOfWork) -> AbstractContextManager[object]:
        # pysqlite cannot roll back to a savepoint reliably; SQLite lock errors
        # also leave the transaction usable, so retry in place there.
        if uow.session.get_bind().dialect.name == "sqlite":
            return nullcontext()
        return uow.session.begin_nested()

    def _adjust_counter(
        self, uow: SQLAlchemyUnitOfWork, post_id: int, counter: str, delta: int
    ) -> int:
        """
        Apply ``delta`` to ``counter`` with bounded retry.

        :raises NotFoundError: If the post vanished.
        :raises UnavailableError: After ``counter_retry_attempts`` failures.
        """
        last_exc: OperationalError | None = None
        for attempt in range(1, self.counter_retry_attempts + 1):
            try:
                with self._savepoint(uow):
                    value = uow.posts.adjust_counter(post_id, counter, delta)
            except OperationalError as exc:
                last_exc = exc
                log.warning(
                    "engagement.counter.retry",
                    extra={"post_id": post_id, "kind": counter, "count": attempt},
                )
                continue
            if value is None:
                raise NotFoundError("Post", post_id)
            return value
        raise UnavailableError("Counter update kept failing; retry later") from last_exc

    # ------------------------------------------------------------------ #
    # Engagement reads
    # ------------------------------------------------------------------ #

    def _is_engaged(self, relation: ToggleRelation, user: CurrentUser, post_id: int) -> bool:
        with self.ro_uow() as uow:
            if not uow.posts.exists(id=post_id):
                raise NotFoundError("Post", post_id)
            return bool(getattr(uow, relation.repository).has(user.id, post_id))

    def is_liked(self, user: CurrentUser, post_id: int) -> bool:
        return self._is_engaged(LIKE, user, post_id)

    def is_retweeted(self, user: CurrentUser, post_id: int) -> bool:
        return self._is_engaged(RETWEET, user, post_id)

    def is_bookmarked(self, user: CurrentUser, post_id: int) -> bool:
        return self._is_engaged(BOOKMARK, user, post_id)

    def _counter(self, counter: str, post_id: int) -> int:
        with self.ro_uow() as uow:
            post = uow.posts.get(post_id)
            if post is None:
                raise NotFoundError("Post", post_id)
            return int(getattr(post, counter))

    def like_counter(self, post_id: int) -> int:
        return self._counter("like_count", post_id)

    def retweet_counter(self, post_id: int) -> int:
        return self._counter("retweet_count", post_id)

    # ------------------------------------------------------------------ #
    # Listings (newest first)
    # ------------------------------------------------------------------ #

    def get_all_posts(self) -> list[PostOut]:
        """Every root post."""
        with self.ro_uow() as uow:
            return [PostOut.from_model(p) for p in uow.posts.list_by_kind(PostKind.ORIGINAL)]

    def get_posts_by_username(self, username: str) -> list[PostOut]:
        """Root posts written by ``username``.

        :raises UserNotFoundError: If the username does not exist.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise UserNotFoundError(username)
            posts = uow.posts.list_by_author(user.id, kind=PostKind.ORIGINAL)
            return [PostOut.from_model(p) for p in posts]

    def get_replies_by_username(self, username: str) -> list[PostOut]:
        """Replies written by ``username``."""
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise UserNotFoundError(username)
            posts = uow.posts.list_by_author(user.id, kind=PostKind.REPLY)
            return [PostOut.from_model(p) for p in posts]

    def get_replies_for_post(self, post_id: int) -> list[PostOut]:
        """Direct replies to ``post_id``.

        :raises NotFoundError: If the post does not exist.
        """
        with self.ro_uow() as uow:
            if not uow.posts.exists(id=post_id):
                raise NotFoundError("Post", post_id)
            return [PostOut.from_model(p) for p in uow.posts.list_replies_to(post_id)]

    def _engaged_by_username(self, relation: ToggleRelation, username: str) -> list[PostOut]:
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise UserNotFoundError(username)
            posts = uow.posts.list_engaged_by(user.id, relation.model)
            return [PostOut.from_model(p) for p in posts]

    def get_retweets_by_username(self, username: str) -> list[PostOut]:
        """Posts retweeted by ``username``."""
        return self._engaged_by_username(RETWEET, username)

    def get_liked_by_username(self, username: str) -> list[PostOut]:
        """Posts liked by ``username``."""
        return self._engaged_by_username(LIKE, username)

    def get_bookmarks(self, user: CurrentUser) -> list[PostOut]:
        """The acting user's own bookmarks. Bookmarks are never listed for others."""
        with self.ro_uow() as uow:
            posts = uow.posts.list_engaged_by(user.id, BOOKMARK.model)
            return [PostOut.from_model(p) for p in posts]
