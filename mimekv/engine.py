"""
Key-Value Engine — content-negotiating get/set over a RecordStore.

Status decisions:

    get:  no record → 404 | Accept mismatch → 406 | otherwise 200
    set:  malformed/generic Content-Type → 400 | backend fault → 500 | 200

Every error is resolved into a Response here; nothing escapes a request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mimekv.core.errors import (
    BadMediaTypeError,
    KeyNotFoundError,
    MimeKVError,
    NotAcceptableError,
    StorageError,
)
from mimekv.media.classifier import DEFAULT_POLICY, MediaPolicy, classify, is_acceptable
from mimekv.store.base import Record, RecordStore

logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """Transport-neutral result of an engine operation."""

    status: int
    content_type: str
    body: bytes

    @classmethod
    def text(cls, status: int, message: str) -> Response:
        return cls(status=status, content_type=TEXT_PLAIN, body=message.encode("utf-8"))


class KeyValueEngine:
    """
    Applies media type policy and Accept negotiation on top of a store.

    Usage:
        engine = KeyValueEngine(InMemoryRecordStore())

        await engine.set("logo", "image/png", png_bytes)   # 200
        await engine.get("logo", "text/plain")             # 406
        await engine.get("logo", "image/*")                # 200, image/png
    """

    def __init__(
        self,
        store: RecordStore,
        policy: MediaPolicy = DEFAULT_POLICY,
    ) -> None:
        self._store = store
        self._policy = policy

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def policy(self) -> MediaPolicy:
        return self._policy

    # ━━━ Operations ━━━

    async def get(self, key: str, accept_header: str | None = None) -> Response:
        """Read a key, honoring the client's Accept header."""
        try:
            record = await self.fetch(key, accept_header)
        except MimeKVError as e:
            return self._resolve(e)
        except Exception:
            logger.exception(f"Unexpected error reading key '{key}'")
            return Response.text(500, "Internal error while reading value")
        return Response(status=200, content_type=record.content_type, body=record.payload)

    async def set(
        self,
        key: str,
        content_type_header: str | None,
        body: bytes,
    ) -> Response:
        """Store body under key as the declared media type."""
        try:
            record = await self.store_value(key, content_type_header, body)
        except MimeKVError as e:
            return self._resolve(e)
        except Exception:
            logger.exception(f"Unexpected error storing key '{key}'")
            return Response.text(500, "Internal error while storing value")
        return Response.text(200, f"Stored '{key}' as {record.content_type}")

    # ━━━ Raising variants ━━━

    async def fetch(self, key: str, accept_header: str | None = None) -> Record:
        """
        Like get(), but returns the Record or raises.

        Raises:
            KeyNotFoundError: no record for key
            NotAcceptableError: stored type does not satisfy accept_header
            StorageError: backend failure
        """
        record = await self._store.get(key)
        if record is None:
            raise KeyNotFoundError(key)

        if not is_acceptable(record.content_type, accept_header):
            raise NotAcceptableError(key, record.content_type, accept_header or "")

        return record

    async def store_value(
        self,
        key: str,
        content_type_header: str | None,
        body: bytes,
    ) -> Record:
        """
        Like set(), but returns the installed Record or raises.

        Raises:
            BadMediaTypeError: header is malformed or generic
            StorageError: backend failure; the key's previous record is intact
        """
        result = classify(content_type_header, self._policy)
        if not result.is_specific:
            raise BadMediaTypeError(
                content_type_header,
                result.reason,
                details={"classification": result.kind.value},
            )

        record = Record(key=key, content_type=result.media_type, payload=body)
        await self._store.put(record)
        logger.debug(
            f"Stored key={key!r} type={record.content_type!r} size={len(record.payload)}"
        )
        return record

    # ━━━ Internals ━━━

    def _resolve(self, error: MimeKVError) -> Response:
        """Map an error onto its status code and plain-text body."""
        if isinstance(error, KeyNotFoundError):
            return Response.text(404, f"Not Found: no value stored for key '{error.key}'")

        if isinstance(error, NotAcceptableError):
            requested = error.requested or "(none)"
            return Response.text(
                406,
                f"Not Acceptable: key '{error.key}' is stored as {error.stored}, "
                f"but the request accepts {requested}",
            )

        if isinstance(error, BadMediaTypeError):
            logger.debug(f"Rejected write: {error.reason}")
            return Response.text(400, f"Bad Request: {error.reason}")

        if isinstance(error, StorageError):
            logger.error(f"Storage failure: {error.message}", exc_info=error)
            return Response.text(500, "Internal error in the storage backend")

        logger.error(f"Unhandled error: {error.message}", exc_info=error)
        return Response.text(500, "Internal server error")
