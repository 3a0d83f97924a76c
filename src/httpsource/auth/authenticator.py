"""Authenticator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx


class Authenticator(ABC):
    """Signs outgoing requests.

    Configured once from the client configuration mapping and applied to
    every request for the lifetime of the HTTP client.
    """

    @abstractmethod
    def configure(self, configs: Mapping[str, Any]) -> None:
        """Read and validate strategy-specific settings.

        Raises ConfigurationError if a required setting is missing.
        """

    @abstractmethod
    def httpx_auth(self) -> httpx.Auth | None:
        """Return the auth hook installed on the HTTP client, or None."""
