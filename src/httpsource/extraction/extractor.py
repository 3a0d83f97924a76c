"""Data extractor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from httpsource.models import Offset, Partition


class DataExtractor(ABC):
    """Turns a validated response into an ordered list of items.

    The response body has already been read when ``extract`` is called.
    Extractors should raise APIClientError (or any exception, which the
    poll cycle wraps) when the body cannot be interpreted.
    """

    @abstractmethod
    def extract(
        self, partition: Partition, offset: Offset, response: httpx.Response,
    ) -> list[Any]:
        """Return the items carried by ``response``, in order."""
