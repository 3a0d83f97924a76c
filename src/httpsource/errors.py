"""Exception types raised by the poll cycle and during configuration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class ConfigurationError(ValueError):
    """Invalid or missing configuration. Fatal at startup."""


class APIClientError(Exception):
    """A poll cycle failed.

    Wraps transport failures, non-success responses, and extraction errors.
    Carries whatever diagnostic context was available when the cycle aborted.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        partition: Any = None,
        offset: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.partition = partition
        self.offset = dict(offset) if offset is not None else None
