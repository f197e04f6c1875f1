"""Model-level rules for :class:`Post` and the engagement relations."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from twitterclone.models import Like, Post, PostKind
from twitterclone.models.post import MAX_TEXT_LENGTH

from tests.factories.post import PostFactory
from tests.factories.user import UserFactory


class TestPostModel:
    def test_defaults(self, session):
        post = PostFactory()
        assert post.kind is PostKind.ORIGINAL
        assert post.parent_id is None
        assert (post.reply_count, post.retweet_count, post.like_count) == (0, 0, 0)
        assert post.created_at is not None

    @pytest.mark.parametrize("text", ["", "   ", "x" * (MAX_TEXT_LENGTH + 1)])
    def test_text_validation(self, text):
        with pytest.raises(ValueError):
            Post(text=text)

    def test_text_at_limit_accepted(self):
        assert Post(text="x" * MAX_TEXT_LENGTH).text == "x" * MAX_TEXT_LENGTH

    def test_reply_without_parent_violates_check(self, session):
        author = UserFactory()
        session.add(Post(author_id=author.id, text="orphan", kind=PostKind.REPLY))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_original_with_parent_violates_check(self, session):
        root = PostFactory()
        session.add(
            Post(author_id=root.author_id, text="bad", kind=PostKind.ORIGINAL, parent_id=root.id)
        )
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_delete_cascades_to_replies_and_engagement(self, session):
        root = PostFactory()
        reply = PostFactory(kind=PostKind.REPLY, parent=root)
        nested = PostFactory(kind=PostKind.REPLY, parent=reply)
        liker = UserFactory()
        session.add_all([Like(user_id=liker.id, post_id=root.id), Like(user_id=liker.id, post_id=nested.id)])
        session.commit()

        session.delete(root)
        session.commit()

        assert session.scalar(select(func.count()).select_from(Post)) == 0
        assert session.scalar(select(func.count()).select_from(Like)) == 0


class TestEngagementModel:
    def test_one_row_per_user_and_post(self, session):
        post = PostFactory()
        user = UserFactory()
        session.add(Like(user_id=user.id, post_id=post.id))
        session.commit()

        session.add(Like(user_id=user.id, post_id=post.id))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()
