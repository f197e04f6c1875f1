# twitterclone/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Token emission configuration.

    :param access_ttl: Access token lifetime.
    :type access_ttl: timedelta
    :param refresh_ttl: Refresh token lifetime.
    :type refresh_ttl: timedelta
    :param refresh_bytes: Entropy of generated refresh tokens, in bytes.
    :type refresh_bytes: int
    """

    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    refresh_bytes: int = 32


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """
    Signed access token plus its absolute expiry.

    :param token: Encoded JWT.
    :param subject: Username the token was issued for.
    :param expires_at: Expiry instant (UTC).
    """

    token: str
    subject: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshTokenOut:
    """
    Opaque refresh token as handed to the client.

    Only its digest is stored server-side.

    :param token: Opaque URL-safe string.
    :param username: Identity the token is bound to.
    :param expires_at: Expiry instant (UTC).
    """

    token: str
    username: str
    expires_at: datetime
