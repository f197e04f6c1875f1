"""Process-wide service instances built once per application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import Flask, current_app

from twitterclone.core.extensions import get_redis
from twitterclone.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from twitterclone.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from twitterclone.infra.sql.sql_refresh_token_store import SqlRefreshTokenStore
from twitterclone.services._shared.locks import KeyedLock
from twitterclone.services._shared.ports import RefreshTokenStore
from twitterclone.services.auth.service import AuthService
from twitterclone.services.engagement.service import EngagementService
from twitterclone.services.tokens.dto import TokenConfig
from twitterclone.services.tokens.service import TokenService

EXTENSION_KEY = "twitterclone.services"


@dataclass(frozen=True, slots=True)
class ServiceContainer:
    """The services a request handler may call."""

    tokens: TokenService
    auth: AuthService
    engagement: EngagementService


def build_refresh_store(config) -> RefreshTokenStore:
    """Select the refresh token store named by ``REFRESH_TOKEN_STORE``."""
    kind = str(config.get("REFRESH_TOKEN_STORE", "sql")).strip().lower()
    if kind == "redis":
        return RedisRefreshTokenStore(get_redis())
    if kind == "sql":
        return SqlRefreshTokenStore()
    raise RuntimeError(f"Unknown REFRESH_TOKEN_STORE: {kind!r}")


def init_app(app: Flask, *, refresh_store: RefreshTokenStore | None = None) -> ServiceContainer:
    """Build the services from ``app.config`` and attach them to the app.

    :param refresh_store: Override the configured store (tests).
    """
    config = app.config
    tokens = TokenService(
        token_provider=JWTTokenProvider(),
        refresh_store=refresh_store or build_refresh_store(config),
        config=TokenConfig(
            access_ttl=timedelta(seconds=int(config["ACCESS_TOKEN_TTL_SECONDS"])),
            refresh_ttl=timedelta(seconds=int(config["REFRESH_TOKEN_TTL_SECONDS"])),
            refresh_bytes=int(config["REFRESH_TOKEN_BYTES"]),
        ),
    )
    container = ServiceContainer(
        tokens=tokens,
        auth=AuthService(
            tokens=tokens,
            default_profile_picture=config["DEFAULT_PROFILE_PICTURE"],
            default_banner_picture=config["DEFAULT_BANNER_PICTURE"],
        ),
        engagement=EngagementService(
            locks=KeyedLock(),
            counter_retry_attempts=int(config["COUNTER_RETRY_ATTEMPTS"]),
        ),
    )
    app.extensions[EXTENSION_KEY] = container
    return container


def get_services() -> ServiceContainer:
    """Return the container bound to the current app."""
    container = current_app.extensions.get(EXTENSION_KEY)
    if container is None:
        raise RuntimeError("Services are not initialized. Call services.container.init_app().")
    return container
