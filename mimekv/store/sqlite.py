"""
SQLite storage backend.

Uses aiosqlite for async SQLite access.
WAL mode enabled for concurrent read support.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import aiosqlite

from mimekv.core.errors import StorageError
from mimekv.store.base import Record, RecordStore

logger = logging.getLogger(__name__)


class SQLiteRecordStore(RecordStore):
    """
    SQLite-based record storage.

    Each write is a single upsert statement committed on its own, so the
    media type and payload of a key always change together. The connection
    is shared, so a statement and its commit or rollback run under one lock;
    otherwise one writer's rollback would discard another's pending upsert.

    Usage:
        store = SQLiteRecordStore("~/.mimekv/data.db")
        await store.initialize()

        await store.put(Record("notes", "text/plain", b"hello"))
        record = await store.get("notes")
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the database and create tables."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            db = await aiosqlite.connect(str(self._db_path))

            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA synchronous=NORMAL")

            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    content_type TEXT NOT NULL,
                    payload BLOB NOT NULL,
                    updated_at REAL NOT NULL DEFAULT (unixepoch('now'))
                )
                """
            )
            await db.commit()
            self._db = db
            logger.debug(f"SQLite storage initialized at {self._db_path}")

        except Exception as e:
            raise StorageError(f"Failed to initialize SQLite at {self._db_path}: {e}") from e

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database is initialized."""
        if self._db is None:
            async with self._init_lock:
                if self._db is None:
                    await self.initialize()
        return self._db  # type: ignore[return-value]

    async def get(self, key: str) -> Record | None:
        db = await self._ensure_db()
        try:
            async with db.execute(
                "SELECT content_type, payload FROM records WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except Exception as e:
            raise StorageError(f"Failed to get key '{key}': {e}") from e
        if row is None:
            return None
        return Record(key=key, content_type=row[0], payload=bytes(row[1]))

    async def put(self, record: Record) -> None:
        db = await self._ensure_db()
        async with self._write_lock:
            try:
                await db.execute(
                    """
                    INSERT INTO records (key, content_type, payload, updated_at)
                    VALUES (?, ?, ?, unixepoch('now'))
                    ON CONFLICT(key) DO UPDATE SET
                        content_type = excluded.content_type,
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (record.key, record.content_type, record.payload),
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                raise StorageError(f"Failed to set key '{record.key}': {e}") from e

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None
