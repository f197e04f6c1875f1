"""Unit tests for RefreshTokenRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from twitterclone.models import RefreshToken
from twitterclone.repositories.refresh_token import RefreshTokenRepository


@pytest.fixture()
def repo(app):
    return RefreshTokenRepository()


def _row(digest: str, *, expires_in: timedelta) -> RefreshToken:
    now = datetime.now(UTC)
    return RefreshToken(
        token_digest=digest, username="johndoe", issued_at=now, expires_at=now + expires_in
    )


def test_get_and_delete_by_digest(repo, session):
    repo.add(_row("a" * 64, expires_in=timedelta(hours=1)))
    session.commit()

    assert repo.get_by_digest("a" * 64).username == "johndoe"
    assert repo.delete_by_digest("a" * 64) is True
    assert repo.delete_by_digest("a" * 64) is False
    session.commit()
    assert repo.get_by_digest("a" * 64) is None


def test_delete_expired_keeps_live_rows(repo, session):
    repo.add(_row("a" * 64, expires_in=timedelta(hours=1)))
    repo.add(_row("b" * 64, expires_in=-timedelta(seconds=1)))
    repo.add(_row("c" * 64, expires_in=-timedelta(days=1)))
    session.commit()

    assert repo.delete_expired(datetime.now(UTC)) == 2
    session.commit()
    assert repo.get_by_digest("a" * 64) is not None


def test_is_expired_compares_in_utc(repo, session):
    repo.add(_row("d" * 64, expires_in=timedelta(minutes=5)))
    session.commit()

    row = repo.get_by_digest("d" * 64)
    now = datetime.now(UTC)
    assert not row.is_expired(now)
    assert row.is_expired(now + timedelta(minutes=6))
