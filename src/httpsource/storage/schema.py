"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from httpsource.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Last committed offset per source partition
CREATE TABLE IF NOT EXISTS offsets (
    source_name     TEXT NOT NULL,
    partition_key   TEXT NOT NULL,          -- JSON object, sorted keys
    offset_data     TEXT NOT NULL,          -- JSON object
    updated_at      TEXT NOT NULL,
    PRIMARY KEY (source_name, partition_key)
);

-- One row per runner pass over all partitions
CREATE TABLE IF NOT EXISTS poll_runs (
    id              TEXT PRIMARY KEY,
    source_name     TEXT NOT NULL,
    started_at      TEXT NOT NULL,
    finished_at     TEXT NOT NULL,
    status          TEXT NOT NULL CHECK (status IN ('success', 'partial', 'error')),
    records         INTEGER NOT NULL DEFAULT 0,
    failures        INTEGER NOT NULL DEFAULT 0,
    error           TEXT
);

CREATE INDEX IF NOT EXISTS idx_poll_runs_started_at ON poll_runs(started_at);
CREATE INDEX IF NOT EXISTS idx_poll_runs_source_name ON poll_runs(source_name);
"""


def init_db(database_path: str) -> None:
    """Create all tables and indexes. Safe to call repeatedly."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
