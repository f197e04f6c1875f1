# twitterclone/services/tokens/service.py
from __future__ import annotations

import logging
import secrets

from twitterclone.services._shared.base import BaseService
from twitterclone.services._shared.errors import InvalidTokenError, UnavailableError
from twitterclone.services._shared.ports.refresh_token_store import (
    RefreshTokenStore,
    RefreshTokenView,
    RotationResult,
    digest_token,
)
from twitterclone.services._shared.ports.token_provider import TokenProvider
from twitterclone.services.tokens.dto import AccessTokenOut, RefreshTokenOut, TokenConfig

log = logging.getLogger(__name__)

# Attempts at drawing a refresh token whose digest is not already stored.
_REGISTER_ATTEMPTS = 3


class TokenService(BaseService):
    """
    Issuance and verification of access tokens; lifecycle of refresh tokens.

    Access tokens are stateless signed JWTs: validity is decided by signature
    and expiry alone, so :meth:`validate_access_token` touches no shared state.

    Refresh tokens are opaque random strings persisted (as digests) through a
    :class:`RefreshTokenStore`. Each value moves through
    ``ISSUED -> rotated | revoked -> ABSENT`` and never comes back.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        refresh_store: RefreshTokenStore,
        config: TokenConfig | None = None,
    ) -> None:
        """
        :param token_provider: Adapter signing/verifying JWTs.
        :param refresh_store: Stateful refresh token store (atomic rotation).
        :param config: Lifetimes and entropy.
        """
        self.provider = token_provider
        self.store = refresh_store
        self.cfg = config or TokenConfig()

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def issue_access_token(self, subject: str) -> AccessTokenOut:
        """
        Sign an access token for ``subject``.

        :param subject: Username placed in the ``sub`` claim.
        :returns: Token with its absolute expiry (now + access TTL).
        """
        expires_at = self.now_utc() + self.cfg.access_ttl
        token = self.provider.create_access_token(
            subject=subject, expires_delta=self.cfg.access_ttl
        )
        return AccessTokenOut(token=token, subject=subject, expires_at=expires_at)

    def validate_access_token(self, token: str) -> str:
        """
        Verify an access token and return its subject.

        Side-effect free. The failure reason (expired, bad signature,
        malformed, wrong type) is logged but never exposed on the error's
        message.

        :raises InvalidTokenError: On any verification failure.
        """
        try:
            claims = self.provider.decode_access_token(token)
        except InvalidTokenError as exc:
            log.info("tokens.access.invalid", extra={"reason": exc.reason})
            raise

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            log.info("tokens.access.invalid", extra={"reason": "missing_subject"})
            raise InvalidTokenError(reason="missing_subject")
        return subject

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def _new_refresh_value(self) -> str:
        return secrets.token_urlsafe(self.cfg.refresh_bytes)

    def issue_refresh_token(self, username: str) -> RefreshTokenOut:
        """
        Generate and persist a fresh refresh token bound to ``username``.

        :raises UnavailableError: If no unused value could be drawn (the store
            kept reporting a digest collision).
        """
        issued_at = self.now_utc()
        expires_at = issued_at + self.cfg.refresh_ttl
        for _ in range(_REGISTER_ATTEMPTS):
            token = self._new_refresh_value()
            if self.store.register(
                digest=digest_token(token),
                username=username,
                issued_at=issued_at,
                expires_at=expires_at,
            ):
                return RefreshTokenOut(token=token, username=username, expires_at=expires_at)
        raise UnavailableError("Could not allocate a refresh token")

    def find_refresh_token(self, token: str) -> RefreshTokenView | None:
        """Return the stored record for ``token`` without any expiry check."""
        return self.store.get(digest_token(token))

    def validate_refresh_token(self, token: str) -> RefreshTokenView:
        """
        Check that ``token`` is live. Does not consume it.

        An expired record is deleted on sight.

        :returns: The stored record (bound username, expiry).
        :raises InvalidTokenError: If absent or expired.
        """
        digest = digest_token(token)
        view = self.store.get(digest)
        if view is None:
            raise InvalidTokenError(reason="refresh_unknown")
        if view.is_expired(self.now_utc()):
            self.store.revoke(digest)
            raise InvalidTokenError(reason="refresh_expired")
        return view

    def rotate_refresh_token(self, old_token: str) -> RefreshTokenOut:
        """
        Consume ``old_token`` and issue its replacement in one atomic step.

        Of several concurrent rotations of the same value exactly one wins;
        the others get :class:`InvalidTokenError`.

        :raises InvalidTokenError: If the old token is absent or expired.
        """
        old_digest = digest_token(old_token)
        view = self.store.get(old_digest)
        if view is None:
            raise InvalidTokenError(reason="refresh_unknown")

        now = self.now_utc()
        expires_at = now + self.cfg.refresh_ttl
        new_token = self._new_refresh_value()
        result = self.store.rotate(
            old_digest=old_digest,
            new_digest=digest_token(new_token),
            now=now,
            new_expires_at=expires_at,
        )
        if result is RotationResult.EXPIRED:
            raise InvalidTokenError(reason="refresh_expired")
        if result is not RotationResult.OK:
            raise InvalidTokenError(reason="refresh_consumed")
        return RefreshTokenOut(token=new_token, username=view.username, expires_at=expires_at)

    def revoke_refresh_token(self, token: str) -> bool:
        """
        Delete the record for ``token``. Idempotent.

        :returns: ``True`` if a live record was removed.
        """
        return self.store.revoke(digest_token(token))

    def purge_expired(self) -> int:
        """Remove expired refresh records. :returns: Number removed."""
        removed = self.store.purge_expired(self.now_utc())
        log.info("tokens.refresh.purged", extra={"count": removed})
        return removed
