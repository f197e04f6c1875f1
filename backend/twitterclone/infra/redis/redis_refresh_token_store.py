# twitterclone/infra/redis/redis_refresh_token_store.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime

import redis

from twitterclone.services._shared.ports import RefreshTokenStore, RefreshTokenView, RotationResult


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Each record is one JSON string under ``rt:<digest>`` with a TTL matching
    its expiry. Inserts use ``SET NX``; rotation uses WATCH/MULTI/EXEC so the
    old key is deleted and the new one written in one atomic step.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(digest: str) -> str:
        return f"rt:{digest}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    @classmethod
    def _payload(cls, username: str, issued_at: datetime, expires_at: datetime) -> str:
        return json.dumps(
            {
                "username": username,
                "issued_at": cls._to_ts(issued_at),
                "expires_at": cls._to_ts(expires_at),
            }
        )

    @staticmethod
    def _parse(digest: str, raw: bytes | str) -> RefreshTokenView:
        data = json.loads(raw)
        return RefreshTokenView(
            digest=digest,
            username=data["username"],
            issued_at=datetime.fromtimestamp(int(data["issued_at"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(data["expires_at"]), tz=UTC),
        )

    @classmethod
    def _ttl(cls, now: datetime, expires_at: datetime) -> int:
        return max(1, cls._to_ts(expires_at) - cls._to_ts(now))

    # -------------------- API ------------------------

    def register(
        self, *, digest: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> bool:
        created = self.r.set(
            self._k(digest),
            self._payload(username, issued_at, expires_at),
            nx=True,
            ex=self._ttl(issued_at, expires_at),
        )
        return bool(created)

    def get(self, digest: str) -> RefreshTokenView | None:
        raw = self.r.get(self._k(digest))
        if raw is None:
            return None
        return self._parse(digest, raw)

    def rotate(
        self, *, old_digest: str, new_digest: str, now: datetime, new_expires_at: datetime
    ) -> RotationResult:
        """
        Atomically consume ``old_digest`` and create ``new_digest``.

        A concurrent change to the old key aborts the transaction and the
        loop re-reads it; the loser then finds it gone and gets ``NOT_FOUND``.
        """
        k_old = self._k(old_digest)
        k_new = self._k(new_digest)

        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_old)
                    raw = p.get(k_old)
                    if raw is None:
                        p.unwatch()
                        return RotationResult.NOT_FOUND

                    old = self._parse(old_digest, raw)
                    p.multi()
                    p.delete(k_old)
                    if old.is_expired(now):
                        p.execute()
                        return RotationResult.EXPIRED

                    p.set(
                        k_new,
                        self._payload(old.username, now, new_expires_at),
                        ex=self._ttl(now, new_expires_at),
                    )
                    p.execute()
                return RotationResult.OK
            except redis.WatchError:
                continue

    def revoke(self, digest: str) -> bool:
        return bool(self.r.delete(self._k(digest)))

    def purge_expired(self, now: datetime) -> int:
        """Redis drops keys at their TTL; this sweeps records whose payload is past expiry."""
        removed = 0
        for key in self.r.scan_iter(match="rt:*"):
            raw = self.r.get(key)
            if raw is None:
                continue
            name = key.decode() if isinstance(key, bytes | bytearray) else str(key)
            if self._parse(name[3:], raw).is_expired(now):
                removed += int(self.r.delete(key))
        return removed
