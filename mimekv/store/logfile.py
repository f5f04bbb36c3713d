"""
Append-only log file backend.

Every write appends one framed entry (see mimekv.store.entry) to a single
file. On startup the file is replayed into an in-memory index; later
entries for a key win. Reads are served from the index.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import aiofiles

from mimekv.core.errors import StorageError
from mimekv.store.base import Record, RecordStore
from mimekv.store.entry import encode_entry, iter_entries

logger = logging.getLogger(__name__)


class LogFileRecordStore(RecordStore):
    """
    Durable record store backed by an append-only file.

    A record enters the index only after its entry has been written and
    flushed, and both happen under one lock, so index order always matches
    log order.

    Usage:
        store = LogFileRecordStore("~/.mimekv/data.log")
        await store.initialize()

        await store.put(Record("report", "application/pdf", pdf_bytes))
    """

    def __init__(self, path: str | Path, compress_threshold: int = 1024) -> None:
        self._path = Path(path).expanduser()
        self._compress_threshold = compress_threshold
        self._index: dict[str, Record] = {}
        self._file = None
        self._size = 0
        self._write_lock = asyncio.Lock()
        self._open_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Replay the log and open it for appending."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        try:
            data = b""
            if self._path.exists():
                async with aiofiles.open(self._path, "rb") as f:
                    data = await f.read()

            index: dict[str, Record] = {}
            good_end = 0
            for record, end in iter_entries(data):
                index[record.key] = record
                good_end = end

            if good_end < len(data):
                os.truncate(self._path, good_end)

            self._file = await aiofiles.open(self._path, "ab")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to open log file {self._path}: {e}") from e

        self._index = index
        self._size = good_end
        logger.debug(
            f"Log file storage initialized at {self._path} "
            f"({len(self._index)} keys)"
        )

    async def _ensure_open(self) -> None:
        """Replay and open the log once, on first use."""
        if self._file is None:
            async with self._open_lock:
                if self._file is None:
                    await self.initialize()

    async def get(self, key: str) -> Record | None:
        await self._ensure_open()
        return self._index.get(key)

    async def put(self, record: Record) -> None:
        await self._ensure_open()

        entry = encode_entry(record, self._compress_threshold)
        async with self._write_lock:
            try:
                await self._file.write(entry)
                await self._file.flush()
            except Exception as e:
                await self._discard_partial()
                raise StorageError(f"Failed to append key '{record.key}': {e}") from e
            self._size += len(entry)
            self._index[record.key] = record

    async def _discard_partial(self) -> None:
        """Cut the log back to its last good entry and reopen the handle.

        The buffered writer may still hold part of the failed entry, so the
        old handle is dropped rather than flushed again.
        """
        old = self._file
        self._file = None
        try:
            await old.close()
        except Exception as e:
            logger.warning(f"Discarding log handle after failed append: {e}")
        os.truncate(self._path, self._size)
        self._file = await aiofiles.open(self._path, "ab")

    async def close(self) -> None:
        if self._file is not None:
            await self._file.close()
            self._file = None
        self._index.clear()
