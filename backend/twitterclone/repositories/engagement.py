"""One generic repository for the ``(user, post)`` engagement relations."""

from __future__ import annotations

from typing import Any, TypeVar, cast

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from twitterclone.repositories.base import BaseRepository

R = TypeVar("R")


class EngagementRepository(BaseRepository[R]):
    """Persistence for a single engagement relation (likes, retweets or bookmarks).

    The mapped class is passed at construction time instead of being fixed on
    a subclass, so the three relations share one implementation.
    """

    def __init__(self, model: type[R], session: Session | None = None) -> None:
        super().__init__(session=session)
        self.model = model

    def _filterable_fields(self):
        return {"user_id": self.model.user_id, "post_id": self.model.post_id}

    def find(self, user_id: int, post_id: int) -> R | None:
        """Return the live row for ``(user_id, post_id)`` or ``None``."""
        model: Any = self.model
        stmt = select(model).where(model.user_id == user_id, model.post_id == post_id)
        return cast(R | None, self.session.execute(stmt).scalars().first())

    def has(self, user_id: int, post_id: int) -> bool:
        return self.find(user_id, post_id) is not None

    def create(self, user_id: int, post_id: int) -> R:
        """Insert a new relation row and flush."""
        return self.add(self.model(user_id=user_id, post_id=post_id))

    def count_for_post(self, post_id: int) -> int:
        """Number of live rows referencing ``post_id``."""
        model: Any = self.model
        stmt = select(func.count()).select_from(model).where(model.post_id == post_id)
        return int(self.session.execute(stmt).scalar_one())
