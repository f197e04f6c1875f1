"""User repository: lookups and credential checks."""

from __future__ import annotations

from typing import cast

from sqlalchemy import func, select

from twitterclone.models.user import User
from twitterclone.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Acts as the credential store: it can look users up and verify a raw
    password against the stored hash. It never issues tokens.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "username": User.username,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_username(self, username: str, *, case_insensitive: bool = False) -> User | None:
        """Fetch a user by username.

        :param username: Handle to look up. Surrounding whitespace is ignored.
        :type username: str
        :param case_insensitive: Compare lower-cased values instead of exact.
        :type case_insensitive: bool
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        name = username.strip()
        if case_insensitive:
            clause = func.lower(User.username) == name.lower()
        else:
            clause = User.username == name
        stmt = self._default_eagerload(select(User).where(clause))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when the username is taken, ignoring case."""
        stmt = select(User.id).where(func.lower(User.username) == username.strip().lower())
        return bool(self.session.execute(stmt).first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def list_usernames(self) -> list[str]:
        """Return every username in alphabetical order."""
        stmt = select(User.username).order_by(User.username.asc())
        return list(self.session.execute(stmt).scalars().all())

    # ---------------------------- Credentials ----------------------------

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when ``password`` matches the stored hash.

        Unknown usernames and wrong passwords both yield ``None``.

        :param username: Handle to authenticate (case-insensitive).
        :param password: Raw password to verify.
        :returns: Authenticated user or ``None``.
        """
        user = self.get_by_username(username, case_insensitive=True)
        if not user or not user.verify_password(password):
            return None
        return user
