"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint

from twitterclone.api.deps import get_services, json_response, load_json, timing
from twitterclone.schemas import (
    AuthResponseSchema,
    LoginSchema,
    RefreshTokenSchema,
    SignupSchema,
)
from twitterclone.services.auth.dto import LoginIn, LogoutIn, RefreshIn, SignupIn

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
auth_response_schema = AuthResponseSchema()


@bp.post("/sign-up")
@timing
def sign_up():
    """Register a new user. No tokens are issued; the client signs in next."""

    data = load_json(signup_schema)
    user = get_services().auth.signup(SignupIn(**data))
    return json_response({"data": {"username": user.username}}, status=201)


@bp.post("/sign-in")
@timing
def sign_in():
    """Authenticate credentials and issue an access/refresh token pair."""

    data = load_json(login_schema)
    out = get_services().auth.login(LoginIn(**data))
    return json_response({"data": auth_response_schema.dump(out)})


@bp.post("/refresh-token")
@timing
def refresh_token():
    """Trade a refresh token for a new access token and a rotated refresh token."""

    data = load_json(refresh_schema)
    out = get_services().auth.refresh_token(RefreshIn(**data))
    return json_response({"data": auth_response_schema.dump(out)})


@bp.post("/logout")
@timing
def logout():
    """Revoke a refresh token. Always succeeds for a well-formed request."""

    data = load_json(refresh_schema)
    get_services().auth.logout(LogoutIn(**data))
    return json_response({"data": {"message": "Refresh token revoked"}})


@bp.get("/usernames")
@timing
def usernames():
    """List every registered username."""

    return json_response({"data": get_services().auth.find_all_usernames()})
