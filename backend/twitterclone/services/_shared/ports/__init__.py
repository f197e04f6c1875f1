"""
twitterclone.services._shared.ports
===================================

Ports (hexagonal interfaces) for token infrastructure.

Modules
-------
- :mod:`token_provider`:
    :class:`~.TokenProvider`, signing and verification of access tokens.
- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore`, :class:`~.RotationResult` and
    :class:`~.RefreshTokenView`, persistence and atomic rotation of refresh
    tokens, plus the process-local :class:`~.InMemoryRefreshTokenStore`.

Concrete adapters (SQL, Redis, Flask-JWT-Extended) live under
``twitterclone.infra``.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    RefreshTokenView,
    RotationResult,
    digest_token,
)
from .token_provider import TokenProvider

__all__ = [
    "TokenProvider",
    "RefreshTokenStore",
    "RefreshTokenView",
    "RotationResult",
    "InMemoryRefreshTokenStore",
    "digest_token",
]
