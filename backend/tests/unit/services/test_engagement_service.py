# tests/unit/services/test_engagement_service.py
from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from twitterclone.models import Bookmark, Like, Post, PostKind, Retweet
from twitterclone.repositories.engagement import EngagementRepository
from twitterclone.repositories.post import PostRepository
from twitterclone.services._shared.errors import (
    ForbiddenError,
    InvalidPostError,
    NotFoundError,
    UnavailableError,
    UserNotFoundError,
)
from twitterclone.services.engagement.dto import PostCreateIn, PostOut
from twitterclone.services.engagement.service import EngagementService

from tests.factories.post import PostFactory
from tests.factories.user import UserFactory
from tests.helpers.utils import as_current_user


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def engagement(app) -> EngagementService:
    return EngagementService(counter_retry_attempts=3)


@pytest.fixture()
def alice(app):
    return as_current_user(UserFactory(username="alice"))


@pytest.fixture()
def bob(app):
    return as_current_user(UserFactory(username="bob"))


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


# -------------------------------- Posts ----------------------------------- #
def test_create_post_projection(engagement, alice):
    out = engagement.create_post(alice, PostCreateIn(text="hello world"))

    assert isinstance(out, PostOut)
    assert out.username == "alice"
    assert out.first_name == alice.first_name
    assert out.kind is PostKind.ORIGINAL
    assert out.parent_id is None
    assert (out.reply_count, out.retweet_count, out.like_count) == (0, 0, 0)
    assert out.created_at is not None


def test_reply_increments_parent_reply_count(engagement, alice, bob):
    root = engagement.create_post(alice, PostCreateIn(text="root"))
    reply = engagement.create_post(
        bob, PostCreateIn(text="reply", kind=PostKind.REPLY, parent_id=root.id)
    )

    assert reply.parent_id == root.id
    assert reply.kind is PostKind.REPLY
    assert [p.reply_count for p in engagement.get_all_posts()] == [1]


def test_reply_to_missing_parent(engagement, alice, session):
    with pytest.raises(NotFoundError):
        engagement.create_post(alice, PostCreateIn(text="x", kind=PostKind.REPLY, parent_id=999))
    assert _count(session, Post) == 0


@pytest.mark.parametrize(
    ("kind", "parent_id"),
    [(PostKind.REPLY, None), (PostKind.ORIGINAL, 1)],
)
def test_kind_and_parent_must_agree(engagement, alice, session, kind, parent_id):
    root = engagement.create_post(alice, PostCreateIn(text="root"))
    assert root.id == 1

    with pytest.raises(InvalidPostError):
        engagement.create_post(alice, PostCreateIn(text="x", kind=kind, parent_id=parent_id))
    assert _count(session, Post) == 1
    assert engagement.get_all_posts()[0].reply_count == 0


def test_delete_post_cascades(engagement, alice, bob, session):
    root = engagement.create_post(alice, PostCreateIn(text="root"))
    reply = engagement.create_post(
        bob, PostCreateIn(text="reply", kind=PostKind.REPLY, parent_id=root.id)
    )
    engagement.toggle_like(bob, root.id)
    engagement.toggle_retweet(bob, reply.id)
    engagement.toggle_bookmark(bob, root.id)

    engagement.delete_post(alice, root.id)

    for model in (Post, Like, Retweet, Bookmark):
        assert _count(session, model) == 0


def test_delete_reply_decrements_parent(engagement, alice, bob):
    root = engagement.create_post(alice, PostCreateIn(text="root"))
    reply = engagement.create_post(
        bob, PostCreateIn(text="reply", kind=PostKind.REPLY, parent_id=root.id)
    )

    engagement.delete_post(bob, reply.id)

    assert engagement.get_all_posts()[0].reply_count == 0
    assert engagement.get_replies_for_post(root.id) == []


def test_only_author_may_delete(engagement, alice, bob):
    post = engagement.create_post(alice, PostCreateIn(text="mine"))
    with pytest.raises(ForbiddenError):
        engagement.delete_post(bob, post.id)
    assert len(engagement.get_all_posts()) == 1


def test_delete_missing_post(engagement, alice):
    with pytest.raises(NotFoundError):
        engagement.delete_post(alice, 999)


# ------------------------------- Toggles ---------------------------------- #
def test_like_scenario(engagement, alice, bob):
    post = engagement.create_post(alice, PostCreateIn(text="like me"))

    first = engagement.toggle_like(bob, post.id)
    assert (first.state, first.active, first.count) == ("LIKED", True, 1)
    assert engagement.is_liked(bob, post.id)
    assert engagement.like_counter(post.id) == 1

    second = engagement.toggle_like(bob, post.id)
    assert (second.state, second.active, second.count) == ("UNLIKED", False, 0)
    assert not engagement.is_liked(bob, post.id)
    assert engagement.like_counter(post.id) == 0


@pytest.mark.parametrize(
    ("toggle", "check", "on", "off"),
    [
        ("toggle_like", "is_liked", "LIKED", "UNLIKED"),
        ("toggle_retweet", "is_retweeted", "RETWEETED", "UNRETWEETED"),
        ("toggle_bookmark", "is_bookmarked", "BOOKMARKED", "UNBOOKMARKED"),
    ],
)
def test_toggle_twice_restores_state(engagement, alice, bob, toggle, check, on, off):
    post = engagement.create_post(alice, PostCreateIn(text="t"))
    before = engagement.get_all_posts()[0]

    assert getattr(engagement, toggle)(bob, post.id).state == on
    assert getattr(engagement, check)(bob, post.id) is True
    assert getattr(engagement, toggle)(bob, post.id).state == off
    assert getattr(engagement, check)(bob, post.id) is False
    assert engagement.get_all_posts()[0] == before


def test_counters_match_relation_rows(engagement, alice, session):
    post = engagement.create_post(alice, PostCreateIn(text="popular"))
    users = [as_current_user(UserFactory()) for _ in range(4)]

    for user in users:
        engagement.toggle_like(user, post.id)
        engagement.toggle_retweet(user, post.id)
    engagement.toggle_like(users[0], post.id)

    assert engagement.like_counter(post.id) == EngagementRepository(Like).count_for_post(post.id) == 3
    assert (
        engagement.retweet_counter(post.id)
        == EngagementRepository(Retweet).count_for_post(post.id)
        == 4
    )


def test_bookmark_touches_no_counter(engagement, alice, bob):
    post = engagement.create_post(alice, PostCreateIn(text="save me"))

    out = engagement.toggle_bookmark(bob, post.id)

    assert out.count is None
    current = engagement.get_all_posts()[0]
    assert (current.like_count, current.retweet_count, current.reply_count) == (0, 0, 0)


def test_toggle_missing_post(engagement, bob):
    with pytest.raises(NotFoundError):
        engagement.toggle_like(bob, 999)
    with pytest.raises(NotFoundError):
        engagement.is_retweeted(bob, 999)
    with pytest.raises(NotFoundError):
        engagement.retweet_counter(999)


def test_toggles_release_their_locks(engagement, alice, bob):
    post = engagement.create_post(alice, PostCreateIn(text="t"))
    engagement.toggle_like(bob, post.id)
    with pytest.raises(NotFoundError):
        engagement.toggle_like(bob, 999)
    assert len(engagement.locks) == 0


# ---------------------- Counter retries and races ------------------------- #
def _operational_error() -> OperationalError:
    return OperationalError("UPDATE posts", {}, Exception("database is locked"))


def test_counter_update_retried_then_succeeds(engagement, alice, bob, monkeypatch):
    post = engagement.create_post(alice, PostCreateIn(text="t"))
    real = PostRepository.adjust_counter
    failures = {"left": 2}

    def flaky(self, post_id, counter, delta):
        if failures["left"]:
            failures["left"] -= 1
            raise _operational_error()
        return real(self, post_id, counter, delta)

    monkeypatch.setattr(PostRepository, "adjust_counter", flaky)

    assert engagement.toggle_like(bob, post.id).count == 1


def test_counter_update_gives_up_and_rolls_back(engagement, alice, bob, monkeypatch, session):
    post = engagement.create_post(alice, PostCreateIn(text="t"))

    def always_locked(self, post_id, counter, delta):
        raise _operational_error()

    monkeypatch.setattr(PostRepository, "adjust_counter", always_locked)

    with pytest.raises(UnavailableError):
        engagement.toggle_like(bob, post.id)
    assert _count(session, Like) == 0


def test_lost_insert_race_is_retryable(engagement, alice, bob, monkeypatch, session):
    post = engagement.create_post(alice, PostCreateIn(text="t"))

    def duplicate(self, user_id, post_id):
        raise IntegrityError("INSERT INTO likes", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(EngagementRepository, "create", duplicate)

    with pytest.raises(UnavailableError):
        engagement.toggle_like(bob, post.id)
    assert engagement.like_counter(post.id) == 0


# ------------------------------- Listings --------------------------------- #
def test_listings(engagement, alice, bob):
    first = engagement.create_post(alice, PostCreateIn(text="first"))
    second = engagement.create_post(alice, PostCreateIn(text="second"))
    reply = engagement.create_post(
        bob, PostCreateIn(text="reply", kind=PostKind.REPLY, parent_id=first.id)
    )
    engagement.toggle_like(bob, first.id)
    engagement.toggle_retweet(bob, second.id)

    assert [p.id for p in engagement.get_all_posts()] == [second.id, first.id]
    assert [p.id for p in engagement.get_posts_by_username("alice")] == [second.id, first.id]
    assert engagement.get_posts_by_username("bob") == []
    assert [p.id for p in engagement.get_replies_by_username("bob")] == [reply.id]
    assert [p.id for p in engagement.get_replies_for_post(first.id)] == [reply.id]
    assert [p.id for p in engagement.get_liked_by_username("bob")] == [first.id]
    assert [p.id for p in engagement.get_retweets_by_username("bob")] == [second.id]


def test_bookmarks_are_private(engagement, alice, bob):
    post = engagement.create_post(alice, PostCreateIn(text="t"))
    engagement.toggle_bookmark(bob, post.id)

    assert [p.id for p in engagement.get_bookmarks(bob)] == [post.id]
    assert engagement.get_bookmarks(alice) == []


@pytest.mark.parametrize(
    "listing",
    [
        "get_posts_by_username",
        "get_replies_by_username",
        "get_retweets_by_username",
        "get_liked_by_username",
    ],
)
def test_listing_unknown_username(engagement, listing):
    with pytest.raises(UserNotFoundError):
        getattr(engagement, listing)("ghost")


def test_replies_for_missing_post(engagement):
    with pytest.raises(NotFoundError):
        engagement.get_replies_for_post(999)


def test_factory_built_posts_are_listed(engagement):
    post = PostFactory()
    assert [p.id for p in engagement.get_all_posts()] == [post.id]
