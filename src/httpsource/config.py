"""Configuration loading and validation."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from httpsource import __version__
from httpsource.errors import ConfigurationError

# Client configuration keys
SERVER_URI_CONFIG = "http.serverUri"
ENDPOINT_CONFIG = "http.endpoint"
METHOD_CONFIG = "http.method"
AUTH_TYPE_CONFIG = "http.auth.type"
AUTH_CLASS_CONFIG = "http.auth.class"
AUTH_USERNAME_CONFIG = "http.auth.username"
AUTH_PASSWORD_CONFIG = "http.auth.password"
AUTH_DOMAIN_CONFIG = "http.auth.domain"
CONNECT_TIMEOUT_CONFIG = "http.timeout.connect"
READ_TIMEOUT_CONFIG = "http.timeout.read"
SSL_VERIFY_CONFIG = "http.ssl.verify"
PROXY_CONFIG = "http.proxy"
USER_AGENT_CONFIG = "http.userAgent"
FOLLOW_REDIRECTS_CONFIG = "http.followRedirects"

AUTH_TYPE_DEFAULT = "none"
DEFAULT_USER_AGENT = f"httpsource/{__version__}"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ClientConfig:
    """Settings consumed once by ``HttpAPIClient.configure``."""

    # Required
    server_uri: str
    endpoint: str

    # Optional — request
    http_method: str = "GET"

    # Optional — auth
    auth_type: str = AUTH_TYPE_DEFAULT
    auth_class: Any = None

    # Optional — transport
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    verify_ssl: bool = True
    proxy: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"'{key}' must be a boolean, got {value!r}")


def _as_float(key: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from exc


def parse_client_config(configs: Mapping[str, Any]) -> ClientConfig:
    """Validate a client configuration mapping.

    Raises ConfigurationError listing every missing required key.
    """
    missing = [key for key in (SERVER_URI_CONFIG, ENDPOINT_CONFIG) if not configs.get(key)]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    return ClientConfig(
        server_uri=str(configs[SERVER_URI_CONFIG]),
        endpoint=str(configs[ENDPOINT_CONFIG]),
        http_method=str(configs.get(METHOD_CONFIG) or "GET").upper(),
        auth_type=str(configs.get(AUTH_TYPE_CONFIG) or AUTH_TYPE_DEFAULT).lower(),
        auth_class=configs.get(AUTH_CLASS_CONFIG),
        connect_timeout=_as_float(CONNECT_TIMEOUT_CONFIG, configs.get(CONNECT_TIMEOUT_CONFIG, 10.0)),
        read_timeout=_as_float(READ_TIMEOUT_CONFIG, configs.get(READ_TIMEOUT_CONFIG, 30.0)),
        verify_ssl=_as_bool(SSL_VERIFY_CONFIG, configs.get(SSL_VERIFY_CONFIG, True)),
        proxy=configs.get(PROXY_CONFIG) or None,
        user_agent=str(configs.get(USER_AGENT_CONFIG) or DEFAULT_USER_AGENT),
        follow_redirects=_as_bool(FOLLOW_REDIRECTS_CONFIG, configs.get(FOLLOW_REDIRECTS_CONFIG, True)),
    )


@dataclass(frozen=True)
class Config:
    """Runner configuration. All values sourced from environment variables."""

    # Required
    database_path: str
    topic: str
    server_uri: str
    endpoint: str

    # Optional — HTTP
    http_method: str = "GET"
    auth_type: str = AUTH_TYPE_DEFAULT
    auth_class: str | None = None
    auth_username: str | None = None
    auth_password: str | None = None
    auth_domain: str | None = None
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    verify_ssl: bool = True
    proxy: str | None = None
    user_agent: str = DEFAULT_USER_AGENT

    # Optional — Extraction
    extractor_type: str = "json"
    extractor_path: str | None = None

    # Optional — Polling
    poll_interval_seconds: int = 60
    items_to_poll: int = 100

    # Optional — Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"

    def client_settings(self) -> dict[str, Any]:
        """Return the ``http.*`` mapping passed to ``HttpAPIClient.configure``."""
        settings: dict[str, Any] = {
            SERVER_URI_CONFIG: self.server_uri,
            ENDPOINT_CONFIG: self.endpoint,
            METHOD_CONFIG: self.http_method,
            AUTH_TYPE_CONFIG: self.auth_type,
            CONNECT_TIMEOUT_CONFIG: self.connect_timeout,
            READ_TIMEOUT_CONFIG: self.read_timeout,
            SSL_VERIFY_CONFIG: self.verify_ssl,
            USER_AGENT_CONFIG: self.user_agent,
        }
        optional = {
            AUTH_CLASS_CONFIG: self.auth_class,
            AUTH_USERNAME_CONFIG: self.auth_username,
            AUTH_PASSWORD_CONFIG: self.auth_password,
            AUTH_DOMAIN_CONFIG: self.auth_domain,
            PROXY_CONFIG: self.proxy,
        }
        settings.update({key: value for key, value in optional.items() if value})
        return settings


_REQUIRED_VARS = [
    "DATABASE_PATH",
    "TOPIC",
    "HTTP_SERVER_URI",
    "HTTP_ENDPOINT",
]


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ConfigurationError listing
    any missing variables.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    try:
        return Config(
            # Required
            database_path=os.environ["DATABASE_PATH"],
            topic=os.environ["TOPIC"],
            server_uri=os.environ["HTTP_SERVER_URI"],
            endpoint=os.environ["HTTP_ENDPOINT"],
            # Optional — HTTP
            http_method=os.environ.get("HTTP_METHOD", "GET").upper(),
            auth_type=os.environ.get("HTTP_AUTH_TYPE", AUTH_TYPE_DEFAULT).lower(),
            auth_class=os.environ.get("HTTP_AUTH_CLASS"),
            auth_username=os.environ.get("HTTP_AUTH_USERNAME"),
            auth_password=os.environ.get("HTTP_AUTH_PASSWORD"),
            auth_domain=os.environ.get("HTTP_AUTH_DOMAIN"),
            connect_timeout=float(os.environ.get("HTTP_TIMEOUT_CONNECT", "10")),
            read_timeout=float(os.environ.get("HTTP_TIMEOUT_READ", "30")),
            verify_ssl=_as_bool("HTTP_SSL_VERIFY", os.environ.get("HTTP_SSL_VERIFY", "true")),
            proxy=os.environ.get("HTTP_PROXY_URL"),
            user_agent=os.environ.get("HTTP_USER_AGENT", DEFAULT_USER_AGENT),
            # Optional — Extraction
            extractor_type=os.environ.get("EXTRACTOR_TYPE", "json"),
            extractor_path=os.environ.get("EXTRACTOR_PATH"),
            # Optional — Polling
            poll_interval_seconds=int(os.environ.get("POLL_INTERVAL_SECONDS", "60")),
            items_to_poll=int(os.environ.get("ITEMS_TO_POLL", "100")),
            # Optional — Application
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_format=os.environ.get("LOG_FORMAT", "json"),
            app_env=os.environ.get("APP_ENV", "production"),
        )
    except ConfigurationError:
        raise
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc
