"""Persisted refresh-token records (digest only, never the raw token)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from twitterclone.core.extensions import db

from .base import PKMixin, ReprMixin


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One outstanding refresh token.

    ``token_digest`` is the hex SHA-256 of the opaque token handed to the
    client. ``username`` is the identity the token was issued for. Timestamps
    are written by the token service so expiry follows the application clock.
    """

    __tablename__ = "refresh_tokens"

    token_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    __table_args__ = (UniqueConstraint("token_digest", name="uq_refresh_tokens_token_digest"),)

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` reaches ``expires_at``."""
        return as_utc(self.expires_at) <= now
