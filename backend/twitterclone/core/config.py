"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env during development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


def read_key_file(path: str | None) -> str | None:
    """Return the PEM contents of ``path`` or ``None`` when no path is given."""
    if not path:
        return None
    return Path(path).read_text(encoding="utf-8")


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    JWT_SECRET_KEY: str
        Symmetric key used by ``flask-jwt-extended`` when signing with HS256.
    JWT_PRIVATE_KEY_PATH / JWT_PUBLIC_KEY_PATH: str | None
        PEM files for RS256 signing. When both are present they are read once
        by :func:`load_signing_keys` at application start-up.
    ACCESS_TOKEN_TTL_SECONDS: int
        Lifetime of access tokens.
    REFRESH_TOKEN_TTL_SECONDS: int
        Lifetime of refresh tokens.
    REFRESH_TOKEN_BYTES: int
        Entropy (bytes) of generated opaque refresh tokens.
    REFRESH_TOKEN_STORE: str
        ``"sql"`` (default) or ``"redis"``; the latter requires ``REDIS_URL``.
    COUNTER_RETRY_ATTEMPTS: int
        Bounded retries for counter updates hitting transient DB conflicts.
    DEFAULT_PROFILE_PICTURE / DEFAULT_BANNER_PICTURE: str
        Opaque media references assigned to new users.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_PRIVATE_KEY_PATH = os.getenv("JWT_PRIVATE_KEY_PATH")
    JWT_PUBLIC_KEY_PATH = os.getenv("JWT_PUBLIC_KEY_PATH")
    JWT_TOKEN_LOCATION = ["headers"]

    # Token lifecycle
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 15 * 60)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 7 * 24 * 3600)
    REFRESH_TOKEN_BYTES = env_int("REFRESH_TOKEN_BYTES", 32)
    REFRESH_TOKEN_STORE = os.getenv("REFRESH_TOKEN_STORE", "sql")
    REDIS_URL = os.getenv("REDIS_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    COUNTER_RETRY_ATTEMPTS = env_int("COUNTER_RETRY_ATTEMPTS", 3)

    # Default media references
    DEFAULT_PROFILE_PICTURE = os.getenv("DEFAULT_PROFILE_PICTURE", "defaults/profile-picture.jpg")
    DEFAULT_BANNER_PICTURE = os.getenv("DEFAULT_BANNER_PICTURE", "defaults/banner-picture.jpg")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:4200")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps refresh tokens in SQL so no Redis server is required.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-jwt-secret-key-with-enough-length"
    JWT_ALGORITHM = "HS256"
    JWT_PRIVATE_KEY_PATH = None
    JWT_PUBLIC_KEY_PATH = None
    REFRESH_TOKEN_STORE = "sql"
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def load_signing_keys(config: dict) -> None:
    """Load asymmetric JWT key material into ``config`` once per process.

    When both ``JWT_PRIVATE_KEY_PATH`` and ``JWT_PUBLIC_KEY_PATH`` are set the
    PEM files are read and ``JWT_ALGORITHM`` is switched to ``RS256``;
    otherwise the symmetric ``JWT_SECRET_KEY`` stays in effect.
    """
    private_pem = read_key_file(config.get("JWT_PRIVATE_KEY_PATH"))
    public_pem = read_key_file(config.get("JWT_PUBLIC_KEY_PATH"))
    if private_pem and public_pem:
        config["JWT_PRIVATE_KEY"] = private_pem
        config["JWT_PUBLIC_KEY"] = public_pem
        config["JWT_ALGORITHM"] = "RS256"
