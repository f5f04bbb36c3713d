"""
mimekv exception hierarchy.

Every error in the system inherits from MimeKVError.
The engine resolves each one into an HTTP status at its boundary:

    KeyNotFoundError    → 404
    NotAcceptableError  → 406
    BadMediaTypeError   → 400
    StorageError        → 500

Usage:
    try:
        record = await engine.fetch(key, accept)
    except NotAcceptableError as e:
        # stored type does not satisfy the Accept header
    except MimeKVError as e:
        # any mimekv error
"""

from __future__ import annotations

from typing import Any


class MimeKVError(Exception):
    """Base exception for all mimekv errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Layer 0: Core Errors ━━━


class ConfigError(MimeKVError):
    """Configuration is invalid, missing, or malformed."""

    pass


# ━━━ Layer 1: Storage Errors ━━━


class StorageError(MimeKVError):
    """Storage backend failure, e.g. a database or I/O error."""

    pass


class CorruptEntryError(StorageError):
    """A log entry could not be decoded."""

    pass


# ━━━ Layer 2: Request Errors ━━━


class KeyNotFoundError(MimeKVError):
    """No record exists for the requested key."""

    def __init__(self, key: str, details: dict | None = None):
        self.key = key
        super().__init__(f"Key '{key}' not found", details)


class NotAcceptableError(MimeKVError):
    """Stored media type cannot satisfy the client's Accept header."""

    def __init__(
        self,
        key: str,
        stored: str,
        requested: str,
        details: dict | None = None,
    ):
        self.key = key
        self.stored = stored
        self.requested = requested
        super().__init__(
            f"Key '{key}' is stored as '{stored}', "
            f"which does not match Accept: {requested}",
            details,
        )


class BadMediaTypeError(MimeKVError):
    """Write attempted with a malformed or generic Content-Type."""

    def __init__(
        self,
        header: str | None,
        reason: str,
        details: dict[str, Any] | None = None,
    ):
        self.header = header
        self.reason = reason
        super().__init__(reason, details)
