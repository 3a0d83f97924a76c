"""Storage layer — SQLite offset persistence for the reference runner."""

from httpsource.storage.connection import get_connection
from httpsource.storage.offsets import OffsetStore
from httpsource.storage.schema import init_db

__all__ = ["OffsetStore", "get_connection", "init_db"]
