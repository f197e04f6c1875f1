"""``flask tokens purge``."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from twitterclone.models import RefreshToken


def test_purge_removes_expired_records(app, session):
    now = datetime.now(UTC)
    session.add_all(
        [
            RefreshToken(token_digest="a" * 64, username="u", issued_at=now, expires_at=now - timedelta(seconds=1)),
            RefreshToken(token_digest="b" * 64, username="u", issued_at=now, expires_at=now + timedelta(days=1)),
        ]
    )
    session.commit()

    result = app.test_cli_runner().invoke(args=["tokens", "purge"])

    assert result.exit_code == 0, result.output
    assert "Purged 1 expired refresh token(s)." in result.output
    assert session.query(RefreshToken).count() == 1
