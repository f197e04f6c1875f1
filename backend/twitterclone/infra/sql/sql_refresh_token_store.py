# twitterclone/infra/sql/sql_refresh_token_store.py
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from twitterclone.models.refresh_token import RefreshToken, as_utc
from twitterclone.services._shared.ports import RefreshTokenStore, RefreshTokenView, RotationResult
from twitterclone.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _view(row: RefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        digest=row.token_digest,
        username=row.username,
        issued_at=as_utc(row.issued_at),
        expires_at=as_utc(row.expires_at),
    )


class SqlRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token store on the ``refresh_tokens`` table.

    Each call runs in its own Unit of Work. Rotation deletes the old row with
    a single ``DELETE`` and inserts the new one in the same transaction; only
    the caller whose ``DELETE`` removed the row goes on to insert, so a value
    can never be rotated twice.

    :param rw_uow: Factory for read-write units of work.
    :param ro_uow: Factory for read-only units of work.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._rw = rw_uow
        self._ro = ro_uow

    def register(
        self, *, digest: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> bool:
        try:
            with self._rw() as uow:
                uow.refresh_tokens.add(
                    RefreshToken(
                        token_digest=digest,
                        username=username,
                        issued_at=issued_at,
                        expires_at=expires_at,
                    )
                )
        except IntegrityError:
            return False
        return True

    def get(self, digest: str) -> RefreshTokenView | None:
        with self._ro() as uow:
            row = uow.refresh_tokens.get_by_digest(digest)
            return _view(row) if row is not None else None

    def rotate(
        self, *, old_digest: str, new_digest: str, now: datetime, new_expires_at: datetime
    ) -> RotationResult:
        with self._rw() as uow:
            repo = uow.refresh_tokens
            row = repo.get_by_digest(old_digest)
            if row is None:
                return RotationResult.NOT_FOUND
            username = row.username
            expired = row.is_expired(now)

            if not repo.delete_by_digest(old_digest):
                # A concurrent rotation or revocation consumed it first.
                return RotationResult.NOT_FOUND
            # The row is gone; SQLite may hand its id to the replacement.
            uow.session.expunge(row)
            if expired:
                return RotationResult.EXPIRED

            repo.add(
                RefreshToken(
                    token_digest=new_digest,
                    username=username,
                    issued_at=now,
                    expires_at=new_expires_at,
                )
            )
            return RotationResult.OK

    def revoke(self, digest: str) -> bool:
        with self._rw() as uow:
            return uow.refresh_tokens.delete_by_digest(digest)

    def purge_expired(self, now: datetime) -> int:
        with self._rw() as uow:
            return uow.refresh_tokens.delete_expired(now)
