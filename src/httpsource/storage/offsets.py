"""Offset persistence keyed by source name and partition."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from httpsource.models import Offset, Partition
from httpsource.storage.connection import get_connection

logger = logging.getLogger(__name__)


def partition_key(partition: Partition) -> str:
    """Stable string form of a partition, used as the storage key."""
    return json.dumps(partition.as_dict(), sort_keys=True, default=str)


class OffsetStore:
    """Reads and writes committed offsets in the ``offsets`` table."""

    def __init__(self, database_path: str, source_name: str) -> None:
        self._database_path = database_path
        self._source_name = source_name

    @property
    def database_path(self) -> str:
        return self._database_path

    @property
    def source_name(self) -> str:
        return self._source_name

    def load(self, partition: Partition) -> Offset | None:
        """Return the committed offset for ``partition``, or None if there is none."""
        with get_connection(self._database_path) as conn:
            row = conn.execute(
                "SELECT offset_data FROM offsets "
                "WHERE source_name = ? AND partition_key = ?",
                (self._source_name, partition_key(partition)),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["offset_data"])

    def save(self, partition: Partition, offset: Offset) -> None:
        offset_data = json.dumps(offset, default=str)
        now = datetime.now(timezone.utc).isoformat()
        with get_connection(self._database_path) as conn:
            conn.execute(
                "INSERT INTO offsets (source_name, partition_key, offset_data, updated_at) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(source_name, partition_key) DO UPDATE SET "
                "offset_data = excluded.offset_data, updated_at = excluded.updated_at",
                (self._source_name, partition_key(partition), offset_data, now),
            )
        logger.debug("Committed offset for %s: %s", partition.url, offset_data)
