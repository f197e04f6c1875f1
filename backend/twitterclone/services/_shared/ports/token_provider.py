from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """Port for signing and verifying access tokens.

    ``decode_access_token`` must raise
    :class:`~twitterclone.services._shared.errors.InvalidTokenError` for any
    token that fails signature, expiry, structure or type checks, with an
    internal ``reason`` describing which.
    """

    def create_access_token(self, *, subject: str, expires_delta: timedelta) -> str: ...

    def decode_access_token(self, token: str) -> dict[str, Any]: ...
