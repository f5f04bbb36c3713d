"""
Record store interface.

One Record per key. A write replaces the whole Record; readers see
either the old Record or the new one, never a mix.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Record:
    """A stored payload and the media type it was accepted as."""

    key: str
    content_type: str
    payload: bytes

    def __post_init__(self) -> None:
        # bytearray/memoryview would let callers mutate a stored payload
        if not isinstance(self.payload, bytes):
            object.__setattr__(self, "payload", bytes(self.payload))


class RecordStore(ABC):
    """
    Abstract base class for storage backends.

    Implementations:
        InMemoryRecordStore — sharded dict, default
        SQLiteRecordStore — aiosqlite table
        LogFileRecordStore — append-only entry log
    """

    async def initialize(self) -> None:
        """Open resources. Backends without any may leave this alone."""
        return None

    @abstractmethod
    async def get(self, key: str) -> Record | None:
        """Get the record for key. Returns None if not found."""
        ...

    @abstractmethod
    async def put(self, record: Record) -> None:
        """Install record, replacing any prior record for its key."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the storage backend."""
        ...
