"""Authentication-related Marshmallow schemas.

Wire names are camelCase; loaded dicts use snake_case keys.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class SignupSchema(Schema):
    """Input payload for account registration."""

    first_name = fields.String(
        required=True, data_key="firstName", validate=validate.Length(min=1, max=50)
    )
    last_name = fields.String(
        required=True, data_key="lastName", validate=validate.Length(min=1, max=50)
    )
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshTokenSchema(Schema):
    """Input payload for refresh and logout: the opaque token plus the claimed username."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1, max=512)
    )
    username = fields.String(load_default=None, allow_none=True)


class AuthResponseSchema(Schema):
    """Token pair returned by login and refresh."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    username = fields.String(required=True)
    expires_at = fields.DateTime(required=True, data_key="expiresAt")
