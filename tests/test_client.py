"""Tests for httpsource.client — partitions, offsets, and the poll cycle."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import httpx
import pytest

from httpsource.client import HttpAPIClient
from httpsource.errors import APIClientError, ConfigurationError
from httpsource.extraction import JsonExtractor
from httpsource.models import SKIP, SOURCE_HEADER, Partition, RequestDescriptor

SETTINGS = {
    "http.serverUri": "http://api.example.com",
    "http.endpoint": "/items",
    "http.auth.type": "none",
}
ITEMS_URL = "http://api.example.com/items"


class _Handler:
    """MockTransport handler that records requests and replays a fixed response."""

    def __init__(self, status_code=200, **response_kwargs):
        self.status_code = status_code
        self.response_kwargs = response_kwargs
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.response_kwargs)


def _make_client(handler, extractor=None, client_cls=HttpAPIClient, **overrides):
    client = client_cls(
        extractor if extractor is not None else JsonExtractor(),
        transport=httpx.MockTransport(handler),
    )
    client.configure({**SETTINGS, **overrides})
    return client


class _CursorClient(HttpAPIClient):
    """Advances a page cursor from a JSON ``next`` field."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.update_calls = 0

    def build_request(self, partition, offset, items_to_poll):
        return self.build_request_with_params(
            partition, offset, items_to_poll,
            query_params={"page": offset.get("page", 1), "limit": items_to_poll},
        )

    def update_offset(self, topic, partition, offset, response, records):
        self.update_calls += 1
        return {"page": response.json()["next"]}


class _SkippingClient(HttpAPIClient):
    def build_request(self, partition, offset, items_to_poll):
        return SKIP


# --- partitions and offsets ---


class TestPartitions:
    def test_single_partition_from_server_and_endpoint(self):
        client = _make_client(_Handler())

        partitions = client.partitions()

        assert len(partitions) == 1
        assert partitions[0].url == ITEMS_URL
        assert partitions[0].method == "GET"

    def test_configured_method(self):
        client = _make_client(_Handler(), **{"http.method": "post"})
        assert client.partitions()[0].method == "POST"

    def test_partitions_idempotent(self):
        client = _make_client(_Handler())
        assert client.partitions() == client.partitions()

    def test_invalid_url_raises_api_client_error(self):
        client = _make_client(_Handler(), **{"http.serverUri": "not-a-url"})
        with pytest.raises(APIClientError, match="partition URL"):
            client.partitions()

    def test_unconfigured_client_raises(self):
        with pytest.raises(ConfigurationError, match="not configured"):
            HttpAPIClient(JsonExtractor()).partitions()

    def test_initial_offset_empty_and_fresh(self):
        client = _make_client(_Handler())
        partition = client.partitions()[0]

        first = client.initial_offset(partition)
        second = client.initial_offset(partition)

        assert first == {} and second == {}
        first["cursor"] = "x"
        assert client.initial_offset(partition) == {}


# --- request building ---


class TestBuildRequest:
    def test_base_request_uses_partition_values(self):
        client = _make_client(_Handler())
        partition = Partition(url=ITEMS_URL, method="GET")

        request = client.build_request(partition, {"cursor": "abc"}, 10)

        assert isinstance(request, RequestDescriptor)
        assert request.url == ITEMS_URL
        assert request.method == "GET"

    def test_with_params_merges_route_and_query(self):
        client = _make_client(_Handler())
        partition = Partition(url="http://api.example.com/users/{user}/items")

        request = client.build_request_with_params(
            partition, {}, 10,
            route_params={"user": "jo smith"},
            query_params={"since": "2025-01-01"},
        )

        assert request.url == "http://api.example.com/users/jo%20smith/items?since=2025-01-01"

    def test_with_params_empty_mappings_keep_url(self):
        client = _make_client(_Handler())
        partition = Partition(url=ITEMS_URL)

        request = client.build_request_with_params(partition, {}, 10, {}, {})

        assert request.url == ITEMS_URL

    def test_with_params_unknown_route_param_raises(self):
        client = _make_client(_Handler())
        partition = Partition(url=ITEMS_URL)

        with pytest.raises(APIClientError, match="Route parameter 'id'"):
            client.build_request_with_params(partition, {}, 10, route_params={"id": "1"})


# --- poll cycle ---


class TestPoll:
    def test_success_returns_records_in_order(self):
        handler = _Handler(200, json=["a", "b"])
        client = _make_client(handler)
        partition = client.partitions()[0]
        offset = client.initial_offset(partition)

        records = client.poll("topic-1", partition, offset, 100)

        assert [r.value for r in records] == ["a", "b"]
        for record in records:
            assert record.topic == "topic-1"
            assert record.key is None
            assert record.partition == partition
            assert record.headers[SOURCE_HEADER] == ITEMS_URL
        assert offset == {}
        assert len(handler.requests) == 1
        assert handler.requests[0].method == "GET"
        assert str(handler.requests[0].url) == ITEMS_URL

    def test_empty_body_list_returns_no_records(self):
        client = _make_client(_Handler(200, json=[]))
        partition = client.partitions()[0]
        assert client.poll("t", partition, {}, 10) == []

    def test_server_error_raises_and_leaves_offset(self):
        client = _make_client(_Handler(500, text="boom"), client_cls=_CursorClient)
        partition = client.partitions()[0]
        offset = {"page": 3}

        with pytest.raises(APIClientError) as exc_info:
            client.poll("t", partition, offset, 10)

        assert offset == {"page": 3}
        assert client.update_calls == 0
        err = exc_info.value
        assert err.status_code == 500
        assert err.body == "boom"
        assert err.offset == {"page": 3}
        assert err.partition == partition
        message = str(err)
        assert "500 Internal Server Error" in message
        assert "boom" in message
        assert ITEMS_URL in message
        assert "'page': 3" in message

    def test_server_error_logged_with_context(self, caplog):
        client = _make_client(_Handler(503, text="maintenance"))
        partition = client.partitions()[0]

        with caplog.at_level("ERROR", logger="httpsource.client"):
            with pytest.raises(APIClientError):
                client.poll("t", partition, {"cursor": "c1"}, 10)

        assert "503" in caplog.text
        assert "maintenance" in caplog.text
        assert "c1" in caplog.text

    def test_client_error_status_raises(self):
        client = _make_client(_Handler(404, text="missing"))
        partition = client.partitions()[0]
        with pytest.raises(APIClientError, match="404"):
            client.poll("t", partition, {}, 10)

    def test_transport_failure_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)
        partition = client.partitions()[0]
        offset = {"page": 1}

        with pytest.raises(APIClientError, match="connection refused") as exc_info:
            client.poll("t", partition, offset, 10)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert offset == {"page": 1}

    def test_timeout_wrapped(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = _make_client(handler)
        with pytest.raises(APIClientError, match="timed out"):
            client.poll("t", client.partitions()[0], {}, 10)

    def test_extractor_failure_wrapped(self):
        extractor = MagicMock()
        extractor.extract.side_effect = KeyError("items")
        client = _make_client(_Handler(200, json={}), extractor=extractor)

        with pytest.raises(APIClientError, match="Failed to extract") as exc_info:
            client.poll("t", client.partitions()[0], {}, 10)

        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_missing_extractor_raises(self):
        client = HttpAPIClient(transport=httpx.MockTransport(_Handler(200, json=[])))
        client.configure(SETTINGS)
        with pytest.raises(APIClientError, match="no data extractor"):
            client.poll("t", client.partitions()[0], {}, 10)

    def test_extractor_receives_partition_offset_response(self):
        extractor = MagicMock()
        extractor.extract.return_value = [1, 2, 3]
        client = _make_client(_Handler(200, json={"n": 3}), extractor=extractor)
        partition = client.partitions()[0]
        offset = {"cursor": "c"}

        records = client.poll("t", partition, offset, 10)

        assert len(records) == 3
        args = extractor.extract.call_args.args
        assert args[0] == partition
        assert args[1] is offset
        assert args[2].json() == {"n": 3}

    def test_skip_makes_no_request(self):
        handler = _Handler(200, json=["a"])
        client = _make_client(handler, client_cls=_SkippingClient)
        offset = {"page": 2}

        records = client.poll("t", client.partitions()[0], offset, 10)

        assert records == []
        assert handler.requests == []
        assert offset == {"page": 2}

    def test_stop_set_skips_poll(self):
        handler = _Handler(200, json=["a"])
        client = _make_client(handler)
        stop = threading.Event()
        stop.set()

        assert client.poll("t", client.partitions()[0], {}, 10, stop) == []
        assert handler.requests == []

    def test_response_closed_on_success_and_failure(self):
        seen: list[httpx.Response] = []

        class _TrackingExtractor(JsonExtractor):
            def extract(self, partition, offset, response):
                seen.append(response)
                return super().extract(partition, offset, response)

        client = _make_client(_Handler(200, json=["a"]), extractor=_TrackingExtractor())
        client.poll("t", client.partitions()[0], {}, 10)
        assert seen[0].is_closed

        seen.clear()
        failing = _make_client(_Handler(200, text="not json"), extractor=_TrackingExtractor())
        with pytest.raises(APIClientError):
            failing.poll("t", failing.partitions()[0], {}, 10)
        assert seen[0].is_closed

    def test_unconfigured_poll_raises(self):
        client = HttpAPIClient(JsonExtractor())
        with pytest.raises(ConfigurationError):
            client.poll("t", Partition(url=ITEMS_URL), {}, 10)


class TestOffsetUpdate:
    def test_update_invoked_once_and_replaces_offset(self):
        handler = _Handler(200, json={"next": 3})
        client = _make_client(handler, extractor=JsonExtractor(), client_cls=_CursorClient)
        partition = client.partitions()[0]
        offset = {"page": 2, "stale": True}

        records = client.poll("t", partition, offset, 25)

        assert client.update_calls == 1
        assert offset == {"page": 3}
        assert len(records) == 1
        assert str(handler.requests[0].url) == f"{ITEMS_URL}?page=2&limit=25"

    def test_records_keep_pre_poll_offset(self):
        client = _make_client(_Handler(200, json={"next": 5}), client_cls=_CursorClient)
        partition = client.partitions()[0]
        offset = {"page": 4}

        records = client.poll("t", partition, offset, 10)

        assert offset == {"page": 5}
        assert dict(records[0].offset) == {"page": 4}

    def test_default_update_is_noop(self):
        client = _make_client(_Handler(200, json=["a"]))
        offset = {"cursor": "keep"}
        client.poll("t", client.partitions()[0], offset, 10)
        assert offset == {"cursor": "keep"}

    def test_update_failure_wrapped_and_offset_kept(self):
        client = _make_client(_Handler(200, json=["a", "b"]), client_cls=_CursorClient)
        partition = client.partitions()[0]
        offset = {"page": 7}

        with pytest.raises(APIClientError) as exc_info:
            client.poll("t", partition, offset, 10)

        assert isinstance(exc_info.value.__cause__, TypeError)
        assert exc_info.value.partition == partition
        assert exc_info.value.offset == {"page": 7}
        assert offset == {"page": 7}

    def test_create_records_failure_wrapped(self):
        class _BrokenRecordsClient(HttpAPIClient):
            def create_records(self, topic, partition, offset, data):
                raise KeyError("tenant")

        client = _make_client(_Handler(200, json=["a"]), client_cls=_BrokenRecordsClient)
        offset = {"page": 1}

        with pytest.raises(APIClientError, match="tenant") as exc_info:
            client.poll("t", client.partitions()[0], offset, 10)

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert offset == {"page": 1}


class _CountingClient(HttpAPIClient):
    """Counts polls per partition in the offset."""

    def update_offset(self, topic, partition, offset, response, records):
        return {"polls": offset.get("polls", 0) + 1, "last": records[-1].value}


class TestConcurrentPolls:
    def test_distinct_partitions_share_one_client(self):
        # Both requests must be in flight at once to pass the barrier.
        barrier = threading.Barrier(2, timeout=5)

        def handler(request):
            barrier.wait()
            name = request.url.path.strip("/")
            return httpx.Response(200, json=[f"{name}-1", f"{name}-2"])

        client = _make_client(handler, client_cls=_CountingClient)
        first = Partition(url="http://api.example.com/a")
        second = Partition(url="http://api.example.com/b")
        offsets = {first: {}, second: {"polls": 5}}

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = {
                partition: pool.submit(client.poll, "t", partition, offsets[partition], 10)
                for partition in (first, second)
            }
            results = {partition: future.result(timeout=10) for partition, future in futures.items()}

        assert [r.value for r in results[first]] == ["a-1", "a-2"]
        assert [r.value for r in results[second]] == ["b-1", "b-2"]
        for partition, records in results.items():
            assert all(r.headers[SOURCE_HEADER] == partition.url for r in records)
            assert all(r.partition == partition for r in records)
        assert offsets[first] == {"polls": 1, "last": "a-2"}
        assert offsets[second] == {"polls": 6, "last": "b-2"}


class TestCreateRecords:
    def test_length_order_and_header(self):
        client = _make_client(_Handler())
        partition = Partition(url=ITEMS_URL)
        items = [{"id": 1}, "two", 3, None]

        records = client.create_records("t", partition, {"o": 1}, items)

        assert len(records) == len(items)
        for record, item in zip(records, items):
            assert record.value == item
            assert record.headers[SOURCE_HEADER] == partition.url
            assert dict(record.offset) == {"o": 1}

    def test_no_items_no_records(self):
        client = _make_client(_Handler())
        assert client.create_records("t", Partition(url=ITEMS_URL), {}, []) == []


class TestLifecycle:
    def test_close_is_idempotent(self):
        client = _make_client(_Handler())
        client.close()
        client.close()

    def test_close_without_configure(self):
        HttpAPIClient().close()

    def test_context_manager_closes(self):
        with _make_client(_Handler()) as client:
            assert client.partitions()
        with pytest.raises(ConfigurationError):
            client.poll("t", Partition(url=ITEMS_URL), {}, 10)

    def test_missing_required_settings(self):
        client = HttpAPIClient(JsonExtractor())
        with pytest.raises(ConfigurationError, match="http.serverUri"):
            client.configure({"http.endpoint": "/items"})

    def test_unknown_auth_type(self):
        client = HttpAPIClient(JsonExtractor())
        with pytest.raises(ConfigurationError, match="Unknown auth type"):
            client.configure({**SETTINGS, "http.auth.type": "kerberos"})

    def test_basic_auth_applied_to_requests(self):
        handler = _Handler(200, json=[])
        client = _make_client(
            handler,
            **{
                "http.auth.type": "basic",
                "http.auth.username": "user",
                "http.auth.password": "pass",
            },
        )

        client.poll("t", client.partitions()[0], {}, 10)

        assert handler.requests[0].headers["Authorization"].startswith("Basic ")

    def test_user_agent_header_sent(self):
        handler = _Handler(200, json=[])
        client = _make_client(handler, **{"http.userAgent": "poller/1.0"})

        client.poll("t", client.partitions()[0], {}, 10)

        assert handler.requests[0].headers["User-Agent"] == "poller/1.0"


# --- end-to-end scenarios ---


class TestScenarios:
    def test_scenario_a_partition_enumeration(self):
        client = _make_client(_Handler())
        [partition] = client.partitions()
        assert partition.url == "http://api.example.com/items"
        assert partition.method == "GET"

    def test_scenario_b_successful_poll(self):
        client = _make_client(_Handler(200, json=["a", "b"]))
        partition = client.partitions()[0]

        records = client.poll("items", partition, client.initial_offset(partition), 100)

        assert [r.value for r in records] == ["a", "b"]
        assert all(r.headers["http.source"] == "http://api.example.com/items" for r in records)

    def test_scenario_c_server_error(self):
        client = _make_client(_Handler(500))
        partition = client.partitions()[0]
        offset = client.initial_offset(partition)

        with pytest.raises(APIClientError):
            client.poll("items", partition, offset, 100)

        assert offset == {}

    def test_scenario_d_skip(self):
        handler = _Handler(200, json=["a"])
        client = _make_client(handler, client_cls=_SkippingClient)
        partition = client.partitions()[0]
        offset = client.initial_offset(partition)

        assert client.poll("items", partition, offset, 100) == []
        assert handler.requests == []
        assert offset == {}
