"""Refresh-token rows keyed by token digest."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select

from twitterclone.models.refresh_token import RefreshToken
from twitterclone.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`."""

    model = RefreshToken

    def get_by_digest(self, digest: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_digest == digest)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def delete_by_digest(self, digest: str) -> bool:
        """Delete the row for ``digest`` in one statement.

        :returns: ``True`` when a row was removed. Only one of several
            concurrent callers can observe ``True`` for the same digest.
        """
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token_digest == digest)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def delete_expired(self, now: datetime) -> int:
        """Remove every row whose ``expires_at`` is not after ``now``."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
