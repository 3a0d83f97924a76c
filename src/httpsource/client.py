"""Generic HTTP polling client — partitions, offsets, and the poll cycle."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from httpsource.auth import resolve_authenticator
from httpsource.config import ClientConfig, parse_client_config
from httpsource.errors import APIClientError, ConfigurationError
from httpsource.extraction.extractor import DataExtractor
from httpsource.models import (
    SKIP,
    SOURCE_HEADER,
    Offset,
    Partition,
    Record,
    RequestDescriptor,
    Skip,
)
from httpsource.transport import build_http_client
from httpsource.urls import UrlBuilder

logger = logging.getLogger(__name__)

_MAX_BODY_IN_MESSAGE = 2000


class HttpAPIClient:
    """Polls one HTTP endpoint and turns each response into records.

    Extraction is delegated to a ``DataExtractor``; subclasses may instead
    override ``extract_data``. Subclasses needing cursors or time ranges
    override ``build_request`` and ``update_offset``.

    No per-poll state is kept on the instance, so polls for different
    partitions may run concurrently on one client.
    """

    def __init__(
        self,
        extractor: DataExtractor | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._extractor = extractor
        self._transport = transport
        self._config: ClientConfig | None = None
        self._http: httpx.Client | None = None

    # --- lifecycle ---

    def configure(self, configs: Mapping[str, Any]) -> None:
        """Validate settings, resolve the authenticator, and build the HTTP client."""
        logger.debug("Configuring HttpAPIClient...")
        config = parse_client_config(configs)
        authenticator = resolve_authenticator(configs, config.auth_type)
        try:
            http = build_http_client(config, authenticator, self._transport)
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            raise ConfigurationError(f"Failed to configure http client: {exc}") from exc

        self.close()
        self._config = config
        self._http = http
        logger.debug("HttpAPIClient configured (server=%s, auth=%s)", config.server_uri, config.auth_type)

    def close(self) -> None:
        """Release the HTTP client. Safe to call repeatedly."""
        if self._http is not None:
            self._http.close()
            self._http = None

    def __enter__(self) -> HttpAPIClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def config(self) -> ClientConfig:
        if self._config is None:
            raise ConfigurationError("HttpAPIClient is not configured")
        return self._config

    # --- partitions and offsets ---

    def partitions(self) -> list[Partition]:
        """Return the partitions this source exposes (one per configured endpoint)."""
        config = self.config
        try:
            url = UrlBuilder(config.server_uri + config.endpoint).url
        except ValueError as exc:
            raise APIClientError(f"Failed to build partition URL: {exc}") from exc
        return [Partition(url=url, method=config.http_method)]

    def initial_offset(self, partition: Partition) -> Offset:
        """Offset used when nothing has been persisted for ``partition``."""
        return {}

    # --- poll cycle ---

    def poll(
        self,
        topic: str,
        partition: Partition,
        offset: Offset,
        items_to_poll: int,
        stop: threading.Event | None = None,
    ) -> list[Record]:
        """Run one poll cycle for ``partition``.

        Returns the records built from the response. When ``update_offset``
        produces a new offset, ``offset`` is replaced in place after the
        cycle succeeds; on failure it is left untouched.

        Raises APIClientError on transport failure, a non-success response,
        or an extraction error.
        """
        if stop is not None and stop.is_set():
            logger.debug("Stop requested, exit poll")
            return []

        request = self.build_request(partition, offset, items_to_poll)
        if request is SKIP:
            logger.debug("No request built, exit poll")
            return []

        http = self._require_http()
        try:
            with http.stream(
                request.method,
                request.url,
                params=dict(request.params) or None,
                headers=dict(request.headers) or None,
                content=request.content,
            ) as response:
                response.read()
                data = self.process_response(partition, offset, response)
                records = self.create_records(topic, partition, offset, data)
                new_offset = self.update_offset(topic, partition, offset, response, records)
        except APIClientError:
            raise
        except httpx.HTTPError as exc:
            raise APIClientError(
                f"Request {request.method} {request.url} failed: {exc}",
                partition=partition,
                offset=offset,
            ) from exc
        except Exception as exc:
            raise APIClientError(
                f"Poll of {request.url} failed: {exc}",
                partition=partition,
                offset=offset,
            ) from exc

        if new_offset is not None:
            replacement = dict(new_offset)
            offset.clear()
            offset.update(replacement)
        return records

    def build_request(
        self, partition: Partition, offset: Offset, items_to_poll: int,
    ) -> RequestDescriptor | Skip:
        """Describe the request for this poll.

        May return ``SKIP`` to end the poll without a request.
        """
        return RequestDescriptor(method=partition.method, url=partition.url)

    def build_request_with_params(
        self,
        partition: Partition,
        offset: Offset,
        items_to_poll: int,
        route_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
    ) -> RequestDescriptor | Skip:
        """Like ``build_request`` but fills route placeholders and appends query params."""
        builder = UrlBuilder(partition.url)
        try:
            for name, value in (route_params or {}).items():
                builder.route_param(name, value)
            for name, value in (query_params or {}).items():
                builder.query_string(name, value)
            url = builder.url
        except ValueError as exc:
            raise APIClientError(str(exc), partition=partition, offset=offset) from exc
        return RequestDescriptor(method=partition.method, url=url)

    def process_response(
        self, partition: Partition, offset: Offset, response: httpx.Response,
    ) -> list[Any]:
        """Check the response status, then extract data from it."""
        if not response.is_success:
            body = response.text
            status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
            logger.error(
                "Unexpected code: %s\n\twith body: %s\n\tfor partition: %s\n\toffset: %s",
                status_line, body, partition, offset,
            )
            raise APIClientError(
                f"Unexpected code: {status_line} from {response.request.url}; "
                f"body: {body[:_MAX_BODY_IN_MESSAGE]}; "
                f"partition: {partition}; offset: {offset}",
                status_code=response.status_code,
                body=body,
                partition=partition,
                offset=offset,
            )
        logger.debug(
            "HttpRequest: %s successfully finished with code: %d",
            response.request.url, response.status_code,
        )

        try:
            return list(self.extract_data(partition, offset, response))
        except APIClientError:
            raise
        except Exception as exc:
            raise APIClientError(
                f"Failed to extract data from {response.request.url}: {exc}",
                status_code=response.status_code,
                partition=partition,
                offset=offset,
            ) from exc

    def extract_data(
        self, partition: Partition, offset: Offset, response: httpx.Response,
    ) -> Sequence[Any]:
        """Convert a successful response into items. Delegates to the extractor."""
        if self._extractor is None:
            raise APIClientError(
                f"{type(self).__name__} has no data extractor",
                partition=partition,
                offset=offset,
            )
        return self._extractor.extract(partition, offset, response)

    def create_records(
        self, topic: str, partition: Partition, offset: Offset, data: Sequence[Any],
    ) -> list[Record]:
        """Wrap each item in a record stamped with the partition URL."""
        headers = {SOURCE_HEADER: partition.url}
        return [
            Record(
                topic=topic,
                partition=partition,
                offset=offset,
                value=value,
                headers=headers,
            )
            for value in data
        ]

    def update_offset(
        self,
        topic: str,
        partition: Partition,
        offset: Offset,
        response: httpx.Response,
        records: list[Record],
    ) -> Offset | None:
        """Compute the next offset once records are built.

        Return None to keep ``offset``, or a mapping that fully replaces it.
        """
        return None

    def _require_http(self) -> httpx.Client:
        if self._http is None:
            raise ConfigurationError("HttpAPIClient is not configured")
        return self._http
