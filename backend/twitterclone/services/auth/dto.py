# twitterclone/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for signup.

    :param first_name: Given name.
    :param last_name: Family name.
    :param username: Requested handle (unique, case-insensitive).
    :param email: Email address (unique, normalized to lower case).
    :param password: Raw password; hashed before storage.
    """

    first_name: str
    last_name: str
    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Handle to authenticate.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    username: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh token.
    :param username: Caller-supplied username; must match the bound one when given.
    """

    refresh_token: str
    username: str | None = None


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Opaque refresh token to revoke.
    :param username: Caller-supplied username, only compared for logging.
    """

    refresh_token: str
    username: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthOut:
    """
    Result of a login or refresh.

    :param access_token: Signed access JWT.
    :param refresh_token: Opaque refresh token (rotated on refresh).
    :param username: Identity the access token was issued for.
    :param expires_at: Absolute access-token expiry (UTC).
    """

    access_token: str
    refresh_token: str
    username: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """
    The acting identity resolved from an access token.

    Passed explicitly into every operation performed on the user's behalf.
    """

    id: int
    username: str
    first_name: str
    last_name: str
