"""Helpers driving the auth endpoints from API tests."""

from __future__ import annotations

from tests.helpers.utils import bearer

API = "/api/v1"


def sign_up(client, username: str = "johndoe", password: str = "pw123", **overrides):
    payload = {
        "firstName": "John",
        "lastName": "Doe",
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
        **overrides,
    }
    return client.post(f"{API}/auth/sign-up", json=payload)


def sign_in(client, username: str = "johndoe", password: str = "pw123"):
    return client.post(f"{API}/auth/sign-in", json={"username": username, "password": password})


def login_headers(client, username: str = "johndoe") -> dict[str, str]:
    """Register ``username`` and return its bearer header."""
    assert sign_up(client, username).status_code == 201
    resp = sign_in(client, username)
    assert resp.status_code == 200, resp.get_json()
    return bearer(resp.get_json()["data"]["accessToken"])
