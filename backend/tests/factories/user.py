"""Factory Boy definition for :class:`twitterclone.models.user.User`."""

from __future__ import annotations

import factory
from twitterclone.models.user import User

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """Build persisted users; the password goes through the hashing setter."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    profile_picture_path = "defaults/profile-picture.jpg"
    banner_picture_path = "defaults/banner-picture.jpg"
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD
