"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from twitterclone.core.config import BaseConfig, get_config, load_signing_keys
from twitterclone.core.logger import configure_logging, init_app as init_logging
from twitterclone.services._shared.ports import RefreshTokenStore


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    refresh_store: RefreshTokenStore | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object or import path; defaults to ``APP_ENV``.
    :param refresh_store: Replace the store selected by ``REFRESH_TOKEN_STORE``.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    load_signing_keys(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers and CORS
    from twitterclone.core import http

    http.init_app(app)

    from twitterclone.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from twitterclone.services import container

    container.init_app(app, refresh_store=refresh_store)

    from twitterclone.api import init_app as init_api

    init_api(app)

    from twitterclone.core import errors

    errors.init_app(app)

    from twitterclone import cli as app_cli

    app_cli.init_app(app)

    return app
