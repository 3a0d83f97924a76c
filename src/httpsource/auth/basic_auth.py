"""HTTP basic authenticator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from httpsource.auth.authenticator import Authenticator
from httpsource.config import AUTH_PASSWORD_CONFIG, AUTH_USERNAME_CONFIG
from httpsource.errors import ConfigurationError


def require_credentials(configs: Mapping[str, Any], auth_name: str) -> tuple[str, str]:
    """Return (username, password) or raise listing the missing keys."""
    missing = [
        key for key in (AUTH_USERNAME_CONFIG, AUTH_PASSWORD_CONFIG)
        if configs.get(key) is None or configs.get(key) == ""
    ]
    if missing:
        raise ConfigurationError(
            f"{auth_name} authentication requires: {', '.join(missing)}"
        )
    return str(configs[AUTH_USERNAME_CONFIG]), str(configs[AUTH_PASSWORD_CONFIG])


class BasicAuthenticator(Authenticator):
    """Sends credentials in an ``Authorization: Basic`` header."""

    def __init__(self) -> None:
        self._auth: httpx.BasicAuth | None = None

    def configure(self, configs: Mapping[str, Any]) -> None:
        username, password = require_credentials(configs, "Basic")
        self._auth = httpx.BasicAuth(username, password)

    def httpx_auth(self) -> httpx.Auth | None:
        if self._auth is None:
            raise ConfigurationError("BasicAuthenticator used before configure()")
        return self._auth
