"""
Log entry framing for the append-only store.

Layout (little-endian), one entry after another:

    flags        u8     0x00 plain, 0x80 zstd-compressed
    -- plain body --
    key_len      u16
    key          utf-8
    value_len    u32
    value        bytes
    mime_len     u16
    mime         utf-8

A compressed entry is the flags byte, a u32 length, and a zstd frame
whose content is the plain body.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterator

import zstandard

from mimekv.core.errors import CorruptEntryError, StorageError
from mimekv.store.base import Record

logger = logging.getLogger(__name__)

FLAG_NONE = 0x00
FLAG_ZSTD = 0x80

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_MAX_U16 = 0xFFFF
_MAX_U32 = 0xFFFFFFFF


class _Truncated(Exception):
    """Buffer ended in the middle of an entry."""


def _encode_body(record: Record) -> bytes:
    key = record.key.encode("utf-8")
    mime = record.content_type.encode("utf-8")
    if len(key) > _MAX_U16:
        raise StorageError(f"Key is too long to store ({len(key)} bytes)")
    if len(mime) > _MAX_U16:
        raise StorageError(f"Media type is too long to store ({len(mime)} bytes)")
    if len(record.payload) > _MAX_U32:
        raise StorageError(f"Value is too large to store ({len(record.payload)} bytes)")
    return b"".join(
        [
            _U16.pack(len(key)),
            key,
            _U32.pack(len(record.payload)),
            record.payload,
            _U16.pack(len(mime)),
            mime,
        ]
    )


def encode_entry(record: Record, compress_threshold: int = 1024) -> bytes:
    """Frame a record; values longer than compress_threshold are zstd-compressed."""
    body = _encode_body(record)
    if len(record.payload) <= compress_threshold:
        return bytes([FLAG_NONE]) + body

    compressed = zstandard.ZstdCompressor().compress(body)
    return bytes([FLAG_ZSTD]) + _U32.pack(len(compressed)) + compressed


def _take(data: bytes | memoryview, offset: int, size: int) -> tuple[bytes, int]:
    end = offset + size
    if end > len(data):
        raise _Truncated()
    return bytes(data[offset:end]), end


def _decode_text(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptEntryError(f"Invalid UTF-8 in {what}") from e


def _decode_body(data: bytes | memoryview, offset: int) -> tuple[Record, int]:
    raw, offset = _take(data, offset, _U16.size)
    key_raw, offset = _take(data, offset, _U16.unpack(raw)[0])
    raw, offset = _take(data, offset, _U32.size)
    value, offset = _take(data, offset, _U32.unpack(raw)[0])
    raw, offset = _take(data, offset, _U16.size)
    mime_raw, offset = _take(data, offset, _U16.unpack(raw)[0])
    record = Record(
        key=_decode_text(key_raw, "key"),
        content_type=_decode_text(mime_raw, "media type"),
        payload=value,
    )
    return record, offset


def decode_entry(data: bytes | memoryview, offset: int = 0) -> tuple[Record, int]:
    """
    Decode the entry starting at offset.

    Returns the record and the offset just past it.

    Raises:
        CorruptEntryError: unknown flags, bad zstd frame or invalid UTF-8
        _Truncated: data ends before the entry does
    """
    flags_raw, offset = _take(data, offset, 1)
    flags = flags_raw[0]

    if flags == FLAG_NONE:
        return _decode_body(data, offset)

    if flags & FLAG_ZSTD:
        raw, offset = _take(data, offset, _U32.size)
        frame, offset = _take(data, offset, _U32.unpack(raw)[0])
        try:
            body = zstandard.ZstdDecompressor().decompress(frame)
        except zstandard.ZstdError as e:
            raise CorruptEntryError(f"Failed to decompress entry: {e}") from e
        try:
            record, end = _decode_body(body, 0)
        except _Truncated as e:
            raise CorruptEntryError("Compressed entry body is incomplete") from e
        if end != len(body):
            raise CorruptEntryError("Compressed entry has trailing bytes")
        return record, offset

    raise CorruptEntryError(f"Unknown entry flags: {flags:#04x}")


def iter_entries(data: bytes) -> Iterator[tuple[Record, int]]:
    """
    Yield (record, end_offset) for every complete entry in data.

    A truncated final entry (e.g. a crash mid-append) ends iteration
    with a warning instead of an error.
    """
    view = memoryview(data)
    offset = 0
    while offset < len(data):
        try:
            record, offset = decode_entry(view, offset)
        except _Truncated:
            logger.warning(
                f"Discarding truncated entry at offset {offset} "
                f"({len(data) - offset} trailing bytes)"
            )
            return
        yield record, offset
