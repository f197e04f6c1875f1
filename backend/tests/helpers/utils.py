"""Tiny helpers shared across test modules."""

from __future__ import annotations

from twitterclone.services.auth.dto import CurrentUser


def as_current_user(user) -> CurrentUser:
    """Project a persisted :class:`User` into the identity services expect."""
    return CurrentUser(
        id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def bearer(token: str) -> dict[str, str]:
    """Authorization header for an access token."""
    return {"Authorization": f"Bearer {token}"}
