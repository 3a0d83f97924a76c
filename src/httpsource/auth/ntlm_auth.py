"""NTLM authenticator backed by httpx-ntlm."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from httpx_ntlm import HttpNtlmAuth

from httpsource.auth.authenticator import Authenticator
from httpsource.auth.basic_auth import require_credentials
from httpsource.config import AUTH_DOMAIN_CONFIG
from httpsource.errors import ConfigurationError


class NTLMAuthenticator(Authenticator):
    """NTLM challenge/response. ``http.auth.domain`` is optional."""

    def __init__(self) -> None:
        self._auth: HttpNtlmAuth | None = None

    def configure(self, configs: Mapping[str, Any]) -> None:
        username, password = require_credentials(configs, "NTLM")
        domain = configs.get(AUTH_DOMAIN_CONFIG)
        if domain:
            username = f"{domain}\\{username}"
        self._auth = HttpNtlmAuth(username, password)

    def httpx_auth(self) -> httpx.Auth | None:
        if self._auth is None:
            raise ConfigurationError("NTLMAuthenticator used before configure()")
        return self._auth
