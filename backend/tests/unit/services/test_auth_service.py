# tests/unit/services/test_auth_service.py
from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from twitterclone.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from twitterclone.services._shared.errors import (
    DuplicateIdentityError,
    InvalidTokenError,
    UnauthenticatedError,
    UserNotFoundError,
)
from twitterclone.services._shared.ports import InMemoryRefreshTokenStore
from twitterclone.services.auth.dto import (
    AuthOut,
    CurrentUser,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SignupIn,
)
from twitterclone.services.auth.service import AuthService
from twitterclone.services.tokens.dto import TokenConfig
from twitterclone.services.tokens.service import TokenService

from tests.factories.user import UserFactory


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def auth(app) -> AuthService:
    """AuthService with real JWTs and an in-memory refresh store."""
    tokens = TokenService(
        token_provider=JWTTokenProvider(),
        refresh_store=InMemoryRefreshTokenStore(),
        config=TokenConfig(access_ttl=timedelta(minutes=15)),
    )
    return AuthService(
        tokens=tokens,
        default_profile_picture="defaults/p.jpg",
        default_banner_picture="defaults/b.jpg",
    )


def _signup(auth: AuthService, username: str = "johndoe", email: str = "john@example.com"):
    return auth.signup(
        SignupIn(
            first_name="John",
            last_name="Doe",
            username=username,
            email=email,
            password="pw123",
        )
    )


# -------------------------------- Signup ---------------------------------- #
def test_signup_creates_user_with_default_media(auth, session):
    from twitterclone.models.user import User

    out = _signup(auth)
    assert isinstance(out, CurrentUser)
    assert out.username == "johndoe"

    user = session.get(User, out.id)
    assert user.profile_picture_path == "defaults/p.jpg"
    assert user.banner_picture_path == "defaults/b.jpg"
    assert user.verify_password("pw123")


def test_signup_issues_no_tokens(auth):
    _signup(auth)
    assert len(auth.tokens.store) == 0


def test_duplicate_username_any_case(auth):
    _signup(auth)
    with pytest.raises(DuplicateIdentityError) as excinfo:
        _signup(auth, username="JohnDoe", email="other@example.com")
    assert excinfo.value.field == "username"


def test_duplicate_email(auth):
    _signup(auth)
    with pytest.raises(DuplicateIdentityError) as excinfo:
        _signup(auth, username="janedoe", email="JOHN@example.com")
    assert excinfo.value.field == "email"


# -------------------------------- Login ----------------------------------- #
def test_signup_then_login_scenario(auth):
    _signup(auth)
    out = auth.login(LoginIn(username="johndoe", password="pw123"))

    assert isinstance(out, AuthOut)
    assert out.username == "johndoe"
    assert auth.tokens.validate_access_token(out.access_token) == "johndoe"
    assert auth.tokens.validate_refresh_token(out.refresh_token).username == "johndoe"


def test_login_wrong_password_and_unknown_user_look_alike(auth, caplog):
    UserFactory(username="johndoe", password="pw123")
    caplog.set_level(logging.WARNING, logger="twitterclone.services.auth.service")

    with pytest.raises(UnauthenticatedError) as wrong:
        auth.login(LoginIn(username="johndoe", password="nope"))
    with pytest.raises(UnauthenticatedError) as unknown:
        auth.login(LoginIn(username="ghost", password="pw123"))

    assert str(wrong.value) == str(unknown.value)
    assert [r.getMessage() for r in caplog.records].count("auth.login.failed") == 2


# ------------------------------- Refresh ---------------------------------- #
def test_refresh_rotates_and_blocks_reuse(auth):
    UserFactory(username="johndoe", password="pw123")
    first = auth.login(LoginIn(username="johndoe", password="pw123"))

    second = auth.refresh_token(RefreshIn(refresh_token=first.refresh_token, username="johndoe"))
    assert second.refresh_token != first.refresh_token
    assert auth.tokens.validate_access_token(second.access_token) == "johndoe"

    with pytest.raises(InvalidTokenError):
        auth.refresh_token(RefreshIn(refresh_token=first.refresh_token))


def test_refresh_without_username_uses_bound_identity(auth):
    UserFactory(username="johndoe", password="pw123")
    pair = auth.login(LoginIn(username="johndoe", password="pw123"))

    out = auth.refresh_token(RefreshIn(refresh_token=pair.refresh_token))
    assert out.username == "johndoe"


def test_refresh_username_mismatch_revokes_token(auth, caplog):
    UserFactory(username="johndoe", password="pw123")
    pair = auth.login(LoginIn(username="johndoe", password="pw123"))
    caplog.set_level(logging.WARNING, logger="twitterclone.services.auth.service")

    with pytest.raises(InvalidTokenError) as excinfo:
        auth.refresh_token(RefreshIn(refresh_token=pair.refresh_token, username="mallory"))

    assert excinfo.value.reason == "username_mismatch"
    assert auth.tokens.find_refresh_token(pair.refresh_token) is None
    assert any(r.getMessage() == "auth.refresh.rejected" for r in caplog.records)


def test_refresh_unknown_token(auth):
    with pytest.raises(InvalidTokenError):
        auth.refresh_token(RefreshIn(refresh_token="never-issued", username="johndoe"))


# -------------------------------- Logout ---------------------------------- #
def test_logout_revokes_and_is_idempotent(auth):
    UserFactory(username="johndoe", password="pw123")
    pair = auth.login(LoginIn(username="johndoe", password="pw123"))

    auth.logout(LogoutIn(refresh_token=pair.refresh_token, username="johndoe"))
    auth.logout(LogoutIn(refresh_token=pair.refresh_token, username="johndoe"))
    auth.logout(LogoutIn(refresh_token="never-issued"))

    with pytest.raises(InvalidTokenError):
        auth.refresh_token(RefreshIn(refresh_token=pair.refresh_token))


def test_logout_with_other_username_still_revokes(auth, caplog):
    UserFactory(username="johndoe", password="pw123")
    pair = auth.login(LoginIn(username="johndoe", password="pw123"))
    caplog.set_level(logging.WARNING, logger="twitterclone.services.auth.service")

    auth.logout(LogoutIn(refresh_token=pair.refresh_token, username="someoneelse"))

    assert auth.tokens.find_refresh_token(pair.refresh_token) is None
    assert any(r.getMessage() == "auth.logout.username_mismatch" for r in caplog.records)


# ------------------------------- Identity --------------------------------- #
def test_resolve_current_user(auth):
    user = UserFactory(username="johndoe", first_name="John", last_name="Doe")
    token = auth.tokens.issue_access_token("johndoe").token

    current = auth.resolve_current_user(token)
    assert current == CurrentUser(id=user.id, username="johndoe", first_name="John", last_name="Doe")


def test_resolve_current_user_for_deleted_subject(auth):
    token = auth.tokens.issue_access_token("ghost").token
    with pytest.raises(UserNotFoundError):
        auth.resolve_current_user(token)


def test_resolve_current_user_rejects_bad_token(auth):
    with pytest.raises(InvalidTokenError):
        auth.resolve_current_user("garbage")


def test_find_all_usernames(auth):
    for name in ("bob", "alice"):
        UserFactory(username=name)
    assert auth.find_all_usernames() == ["alice", "bob"]


# ------------------------- Configured SQL store --------------------------- #
def test_login_and_refresh_through_sql_store(services):
    UserFactory(username="johndoe", password="pw123")
    pair = services.auth.login(LoginIn(username="johndoe", password="pw123"))
    rotated = services.auth.refresh_token(RefreshIn(refresh_token=pair.refresh_token))

    assert rotated.username == "johndoe"
    with pytest.raises(InvalidTokenError):
        services.auth.refresh_token(RefreshIn(refresh_token=pair.refresh_token))
