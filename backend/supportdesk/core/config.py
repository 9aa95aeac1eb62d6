"""Environment-driven settings, one class per deployment flavour.

``APP_ENV`` selects the class (``development`` by default); individual values
come from environment variables, optionally seeded from a ``.env`` file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"
TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """
    Read a boolean flag.

    :param name: Environment variable name.
    :param default: Returned when the variable is unset.
    :returns: ``True`` for ``1/true/yes/y/on`` (any case), else ``False``.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


def env_int(name: str, default: int) -> int:
    """Read an integer; unset or blank values give ``default``."""
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


class BaseConfig:
    """
    Settings shared by every environment.

    Groups
    ------
    - Signing: ``JWT_*`` (algorithm ``none`` refused at startup).
    - Sessions: ``ACCESS_TOKEN_MINUTES``, ``REFRESH_TOKEN_DAYS`` and
      ``MAX_ACTIVE_SESSIONS`` (``0`` disables the per-user cap).
    - Domains: ``DOMAIN_VERIFICATION_*`` for the DNS worker, ``WIDGET_URL``
      for the embed script handed to verified sites.
    - Infrastructure: database, optional ``REDIS_URL`` (rate limits and the
      worker lock), CORS and proxy handling.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # Signing
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT_SIGNING_KEY_AT_LEAST_32B")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ENCODE_ISSUER = JWT_DECODE_ISSUER = os.getenv("JWT_ISSUER", "supportdesk")
    JWT_ENCODE_AUDIENCE = JWT_DECODE_AUDIENCE = os.getenv("JWT_AUDIENCE", "supportdesk-dashboard")
    JWT_DECODE_LEEWAY = 0

    # Sessions
    ACCESS_TOKEN_MINUTES = env_int("ACCESS_TOKEN_MINUTES", 60)
    REFRESH_TOKEN_DAYS = env_int("REFRESH_TOKEN_DAYS", 30)
    MAX_ACTIVE_SESSIONS = env_int("MAX_ACTIVE_SESSIONS", 5)
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    AUTH_REGISTER_RATE_LIMIT = os.getenv("AUTH_REGISTER_RATE_LIMIT", "10 per hour")

    # Domains
    DOMAIN_VERIFICATION_ENABLED = env_bool("DOMAIN_VERIFICATION_ENABLED", False)
    DOMAIN_VERIFICATION_INTERVAL_SECONDS = env_int("DOMAIN_VERIFICATION_INTERVAL_SECONDS", 300)
    DOMAIN_VERIFICATION_BATCH_SIZE = env_int("DOMAIN_VERIFICATION_BATCH_SIZE", 20)
    DOMAIN_VERIFICATION_MAX_ATTEMPTS = env_int("DOMAIN_VERIFICATION_MAX_ATTEMPTS", 10)
    DOMAIN_VERIFICATION_MAX_BACKOFF_MINUTES = env_int(
        "DOMAIN_VERIFICATION_MAX_BACKOFF_MINUTES", 60
    )
    DOMAIN_VERIFICATION_ERROR_RETRY_MINUTES = env_int(
        "DOMAIN_VERIFICATION_ERROR_RETRY_MINUTES", 15
    )
    DOMAIN_VERIFICATION_DNS_TIMEOUT_SECONDS = env_int("DOMAIN_VERIFICATION_DNS_TIMEOUT_SECONDS", 5)
    WIDGET_URL = os.getenv("WIDGET_URL", "http://localhost:3001")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Redis and rate limiting
    REDIS_URL = os.getenv("REDIS_URL") or None
    REDIS_SOCKET_TIMEOUT = env_int("REDIS_SOCKET_TIMEOUT", 5)
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI") or REDIS_URL or "memory://"

    # HTTP edge
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = 600
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXY_HOPS = env_int("PROXY_HOPS", 1)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """
    Automated test runs.

    In-memory SQLite unless ``TEST_DATABASE_URL`` is set; no rate limits, no
    Redis and no background verification thread.
    """

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    DOMAIN_VERIFICATION_ENABLED = False
    REDIS_URL = None


class ProductionConfig(BaseConfig):
    SQLALCHEMY_ECHO = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class named by ``APP_ENV``; unknown names fall back to development."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def ensure_signing_config(config: Mapping[str, Any]) -> None:
    """
    Refuse to boot without a real signing setup.

    :param config: Loaded Flask configuration.
    :raises RuntimeError: If the algorithm is empty or ``none``, or no key is set.
    """
    algorithm = str(config.get("JWT_ALGORITHM") or "").strip()
    if not algorithm or algorithm.lower() == "none":
        raise RuntimeError("JWT_ALGORITHM must name a signing algorithm (not 'none').")
    if not config.get("JWT_SECRET_KEY"):
        raise RuntimeError("JWT_SECRET_KEY must be configured.")
