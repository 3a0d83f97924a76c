"""JSON body extractor."""

from __future__ import annotations

import json
from typing import Any

import httpx

from httpsource.errors import APIClientError
from httpsource.extraction.extractor import DataExtractor
from httpsource.models import Offset, Partition


class JsonExtractor(DataExtractor):
    """Decode a JSON body, optionally descending a dotted ``path``.

    A list yields its elements, null or a missing path yields nothing, and
    any other value is a single item.
    """

    def __init__(self, path: str | None = None) -> None:
        self._path = [part for part in (path or "").split(".") if part]

    def extract(
        self, partition: Partition, offset: Offset, response: httpx.Response,
    ) -> list[Any]:
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise APIClientError(
                f"Response from {partition.url} is not valid JSON: {exc}",
                status_code=response.status_code,
                body=response.text[:2000],
                partition=partition,
                offset=offset,
            ) from exc

        for key in self._path:
            if isinstance(data, dict):
                data = data.get(key)
            elif isinstance(data, list) and key.isdigit() and int(key) < len(data):
                data = data[int(key)]
            else:
                data = None
            if data is None:
                break

        if data is None:
            return []
        if isinstance(data, list):
            return list(data)
        return [data]
