"""Unit tests for the generic EngagementRepository."""

from __future__ import annotations

import pytest
from twitterclone.models import Bookmark, Like, Retweet
from twitterclone.repositories.engagement import EngagementRepository

from tests.factories.post import PostFactory
from tests.factories.user import UserFactory


@pytest.mark.parametrize("model", [Like, Retweet, Bookmark])
def test_create_find_and_count(app, session, model):
    repo = EngagementRepository(model)
    post = PostFactory()
    alice, bob = UserFactory(), UserFactory()

    assert repo.find(alice.id, post.id) is None
    repo.create(alice.id, post.id)
    repo.create(bob.id, post.id)
    session.commit()

    assert repo.has(alice.id, post.id)
    assert repo.count_for_post(post.id) == 2

    repo.delete(repo.find(alice.id, post.id))
    session.commit()
    assert not repo.has(alice.id, post.id)
    assert repo.count_for_post(post.id) == 1


def test_relations_are_independent(app, session):
    post = PostFactory()
    user = UserFactory()
    EngagementRepository(Like).create(user.id, post.id)
    session.commit()

    assert EngagementRepository(Like).has(user.id, post.id)
    assert not EngagementRepository(Retweet).has(user.id, post.id)
    assert not EngagementRepository(Bookmark).has(user.id, post.id)
