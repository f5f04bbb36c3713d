"""
In-memory storage backend.

Dict-based storage split across lock shards. Data lost when process exits.
"""

from __future__ import annotations

import threading

from mimekv.store.base import Record, RecordStore


class InMemoryRecordStore(RecordStore):
    """
    In-memory record store.

    Each key hashes to one of `shards` locks; only writers and readers of
    keys in the same shard contend, and only for a dict lookup or swap.

    Usage:
        store = InMemoryRecordStore()
        await store.put(Record("logo", "image/png", png_bytes))
        record = await store.get("logo")
    """

    def __init__(self, shards: int = 16) -> None:
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: list[dict[str, Record]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def _index(self, key: str) -> int:
        return hash(key) % len(self._shards)

    async def get(self, key: str) -> Record | None:
        i = self._index(key)
        with self._locks[i]:
            return self._shards[i].get(key)

    async def put(self, record: Record) -> None:
        i = self._index(record.key)
        with self._locks[i]:
            self._shards[i][record.key] = record

    def __len__(self) -> int:
        return sum(len(shard) for shard in self._shards)

    async def close(self) -> None:
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                shard.clear()
