"""Auth endpoints under ``/api/v1/auth``."""

from __future__ import annotations

from tests.helpers.auth import API, sign_in, sign_up


def test_sign_up_returns_201(client):
    resp = sign_up(client)
    assert resp.status_code == 201
    assert resp.get_json() == {"data": {"username": "johndoe"}}


def test_sign_up_duplicate_username(client):
    sign_up(client)
    resp = sign_up(client, "JOHNDOE", email="fresh@example.com")

    assert resp.status_code == 409
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "duplicate_identity"


def test_sign_up_validation_error(client):
    resp = client.post(f"{API}/auth/sign-up", json={"username": "jo", "email": "nope"})

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["code"] == "validation_error"
    errors = body["details"]["errors"]
    assert {"firstName", "lastName", "username", "email", "password"} <= set(errors)


def test_sign_in_returns_token_pair(client):
    sign_up(client)
    resp = sign_in(client)

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["username"] == "johndoe"
    assert data["accessToken"] and data["refreshToken"] and data["expiresAt"]


def test_sign_in_bad_credentials(client):
    sign_up(client)
    wrong = sign_in(client, password="nope")
    unknown = sign_in(client, username="ghost")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json()["code"] == unknown.get_json()["code"] == "unauthenticated"
    assert wrong.get_json()["detail"] == unknown.get_json()["detail"]


def test_refresh_rotates(client):
    sign_up(client)
    pair = sign_in(client).get_json()["data"]

    resp = client.post(
        f"{API}/auth/refresh-token",
        json={"refreshToken": pair["refreshToken"], "username": "johndoe"},
    )
    assert resp.status_code == 200
    rotated = resp.get_json()["data"]
    assert rotated["refreshToken"] != pair["refreshToken"]

    reuse = client.post(f"{API}/auth/refresh-token", json={"refreshToken": pair["refreshToken"]})
    assert reuse.status_code == 401
    assert reuse.get_json()["code"] == "invalid_token"


def test_refresh_username_mismatch(client):
    sign_up(client)
    pair = sign_in(client).get_json()["data"]

    resp = client.post(
        f"{API}/auth/refresh-token",
        json={"refreshToken": pair["refreshToken"], "username": "mallory"},
    )

    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Invalid or expired token"


def test_logout_is_idempotent(client):
    sign_up(client)
    pair = sign_in(client).get_json()["data"]
    body = {"refreshToken": pair["refreshToken"], "username": "johndoe"}

    assert client.post(f"{API}/auth/logout", json=body).status_code == 200
    assert client.post(f"{API}/auth/logout", json=body).status_code == 200

    resp = client.post(f"{API}/auth/refresh-token", json=body)
    assert resp.status_code == 401


def test_usernames(client):
    sign_up(client, "bob")
    sign_up(client, "alice")

    resp = client.get(f"{API}/auth/usernames")
    assert resp.get_json() == {"data": ["alice", "bob"]}
