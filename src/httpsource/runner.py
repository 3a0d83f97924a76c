"""Reference host — drives poll cycles, delivers records, commits offsets."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from httpsource.client import HttpAPIClient
from httpsource.errors import APIClientError
from httpsource.models import Partition, Record
from httpsource.storage.connection import get_connection
from httpsource.storage.offsets import OffsetStore

logger = logging.getLogger(__name__)

RecordSink = Callable[[list[Record]], None]


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one pass over all partitions."""

    records: int
    failures: int


class PollRunner:
    """Polls every partition of a client once per ``run_once`` call.

    Records are handed to ``sink`` before the partition's offset is
    committed, so a crash between the two replays the batch rather than
    losing it. A failed poll leaves the committed offset untouched.
    """

    def __init__(
        self,
        client: HttpAPIClient,
        topic: str,
        store: OffsetStore,
        sink: RecordSink,
        *,
        items_to_poll: int = 100,
        stop: threading.Event | None = None,
    ) -> None:
        self._client = client
        self._topic = topic
        self._store = store
        self._sink = sink
        self._items_to_poll = items_to_poll
        self._stop = stop or threading.Event()
        self._partitions: list[Partition] | None = None

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    def partitions(self) -> list[Partition]:
        """Partitions are enumerated once and reused for every run."""
        if self._partitions is None:
            self._partitions = self._client.partitions()
            logger.info("Polling %d partition(s) for topic '%s'", len(self._partitions), self._topic)
        return self._partitions

    def run_once(self) -> RunSummary:
        started_at = datetime.now(timezone.utc).isoformat()
        total_records = 0
        failures = 0
        error_msg = None

        try:
            for partition in self.partitions():
                if self._stop.is_set():
                    logger.info("Stop requested, ending run early")
                    break
                try:
                    total_records += self._poll_partition(partition)
                except APIClientError:
                    logger.exception("Poll failed for %s", partition.url)
                    failures += 1
        except APIClientError as exc:
            logger.exception("Partition enumeration failed")
            error_msg = str(exc)
            failures += 1

        logger.info("Poll run complete: %d records, %d failures", total_records, failures)
        self._record_run(started_at, total_records, failures, error_msg)
        return RunSummary(records=total_records, failures=failures)

    def _poll_partition(self, partition: Partition) -> int:
        offset = self._store.load(partition)
        if offset is None:
            offset = self._client.initial_offset(partition)

        records = self._client.poll(
            self._topic, partition, offset, self._items_to_poll, self._stop,
        )
        if records:
            self._sink(records)
        self._store.save(partition, offset)
        return len(records)

    def _record_run(
        self, started_at: str, records: int, failures: int, error: str | None,
    ) -> None:
        """Insert a row into the poll_runs table."""
        finished_at = datetime.now(timezone.utc).isoformat()
        if error:
            status = "error"
        elif failures:
            status = "partial"
        else:
            status = "success"
        with get_connection(self._store.database_path) as conn:
            conn.execute(
                "INSERT INTO poll_runs "
                "(id, source_name, started_at, finished_at, status, records, failures, error) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    str(uuid.uuid4()),
                    self._store.source_name,
                    started_at,
                    finished_at,
                    status,
                    records,
                    failures,
                    error,
                ),
            )
