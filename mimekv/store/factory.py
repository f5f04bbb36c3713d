"""Build a RecordStore from configuration."""

from __future__ import annotations

import logging

from mimekv.core.config import StoreConfig
from mimekv.core.errors import ConfigError
from mimekv.store.base import RecordStore

logger = logging.getLogger(__name__)


def create_store(config: StoreConfig) -> RecordStore:
    """
    Create the backend named by config.backend.

    The store is not initialized; call `await store.initialize()`.
    """
    if config.backend == "memory":
        from mimekv.store.memory import InMemoryRecordStore

        store: RecordStore = InMemoryRecordStore(shards=config.shards)
    elif config.backend == "sqlite":
        from mimekv.store.sqlite import SQLiteRecordStore

        store = SQLiteRecordStore(config.resolved_path())
    elif config.backend == "logfile":
        from mimekv.store.logfile import LogFileRecordStore

        store = LogFileRecordStore(
            config.resolved_path(),
            compress_threshold=config.compress_threshold,
        )
    else:
        raise ConfigError(f"Unknown storage backend: {config.backend!r}")

    logger.debug(f"Created {config.backend} store")
    return store
