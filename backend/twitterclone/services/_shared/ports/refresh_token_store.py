from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Protocol


def digest_token(token: str) -> str:
    """Return the hex SHA-256 digest stores key refresh tokens by."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RotationResult(Enum):
    """Outcome of an atomic refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()
    EXPIRED = auto()


@dataclass(frozen=True)
class RefreshTokenView:
    """
    Read-model for a stored refresh token.

    :ivar digest: SHA-256 digest of the opaque token.
    :ivar username: Identity the token was issued for.
    :ivar issued_at: Issuance instant (UTC).
    :ivar expires_at: Absolute expiration (UTC).
    """

    digest: str
    username: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens, keyed by digest.

    Every successful :meth:`rotate` or :meth:`revoke` removes the record, so a
    token value can be consumed at most once. Rotation MUST be atomic.
    """

    def register(
        self, *, digest: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> bool:
        """Insert a new record. :returns: ``False`` if the digest already exists."""

    def get(self, digest: str) -> RefreshTokenView | None:
        """Fetch a record snapshot (expired records included)."""

    def rotate(
        self, *, old_digest: str, new_digest: str, now: datetime, new_expires_at: datetime
    ) -> RotationResult:
        """
        Atomically delete ``old_digest`` and insert ``new_digest`` for the same username.

        An expired old record is deleted and ``EXPIRED`` returned; nothing is
        inserted in that case.
        """

    def revoke(self, digest: str) -> bool:
        """Delete a record. :returns: ``True`` if it existed."""

    def purge_expired(self, now: datetime) -> int:
        """Delete every expired record. :returns: Number removed."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local refresh token store.

    .. note::
       A single lock makes every operation atomic; used by unit tests.
    """

    def __init__(self) -> None:
        self._records: dict[str, RefreshTokenView] = {}
        self._lock = threading.Lock()

    def register(
        self, *, digest: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> bool:
        with self._lock:
            if digest in self._records:
                return False
            self._records[digest] = RefreshTokenView(
                digest=digest, username=username, issued_at=issued_at, expires_at=expires_at
            )
            return True

    def get(self, digest: str) -> RefreshTokenView | None:
        with self._lock:
            return self._records.get(digest)

    def rotate(
        self, *, old_digest: str, new_digest: str, now: datetime, new_expires_at: datetime
    ) -> RotationResult:
        with self._lock:
            old = self._records.pop(old_digest, None)
            if old is None:
                return RotationResult.NOT_FOUND
            if old.is_expired(now):
                return RotationResult.EXPIRED
            self._records[new_digest] = RefreshTokenView(
                digest=new_digest,
                username=old.username,
                issued_at=now,
                expires_at=new_expires_at,
            )
            return RotationResult.OK

    def revoke(self, digest: str) -> bool:
        with self._lock:
            return self._records.pop(digest, None) is not None

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [d for d, rec in self._records.items() if rec.is_expired(now)]
            for d in expired:
                del self._records[d]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
