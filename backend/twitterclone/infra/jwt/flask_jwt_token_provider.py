# twitterclone/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

import jwt as pyjwt

from twitterclone.services._shared.errors import InvalidTokenError
from twitterclone.services._shared.ports import TokenProvider

ACCESS_TOKEN_TYPE = "access"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    Signing material (HS256 secret or RS256 key pair) is read from the app
    config, loaded once at start-up.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def create_access_token(self, *, subject: str, expires_delta: timedelta) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(str, _create_access(identity=subject, expires_delta=expires_delta))

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry and type, mapping library errors to
        :class:`InvalidTokenError` with a log-only ``reason``.
        """
        from flask_jwt_extended import decode_token
        from flask_jwt_extended.exceptions import JWTExtendedException

        try:
            claims = cast(dict[str, Any], decode_token(token))
        except pyjwt.ExpiredSignatureError as exc:
            raise InvalidTokenError(reason="expired") from exc
        except pyjwt.InvalidSignatureError as exc:
            raise InvalidTokenError(reason="bad_signature") from exc
        except (pyjwt.PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError(reason="malformed") from exc

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError(reason="wrong_type")
        return claims
