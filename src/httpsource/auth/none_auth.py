"""No-op authenticator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from httpsource.auth.authenticator import Authenticator


class NoneAuthenticator(Authenticator):
    def configure(self, configs: Mapping[str, Any]) -> None:
        pass

    def httpx_auth(self) -> httpx.Auth | None:
        return None
