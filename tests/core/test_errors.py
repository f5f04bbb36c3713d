"""Tests for the error hierarchy."""

from mimekv.core.errors import (
    BadMediaTypeError,
    ConfigError,
    CorruptEntryError,
    KeyNotFoundError,
    MimeKVError,
    NotAcceptableError,
    StorageError,
)


def test_all_errors_share_base():
    for error in (
        ConfigError("x"),
        StorageError("x"),
        CorruptEntryError("x"),
        KeyNotFoundError("k"),
        NotAcceptableError("k", "image/png", "text/plain"),
        BadMediaTypeError(None, "missing"),
    ):
        assert isinstance(error, MimeKVError)


def test_corrupt_entry_is_storage_error():
    assert isinstance(CorruptEntryError("bad"), StorageError)


def test_messages():
    assert "k" in KeyNotFoundError("k").message
    error = NotAcceptableError("logo", "image/png", "text/plain")
    assert "image/png" in str(error)
    assert "text/plain" in str(error)


def test_details_default_empty():
    assert StorageError("x").details == {}
    assert BadMediaTypeError("*/*", "wildcard", {"classification": "generic"}).details == {
        "classification": "generic"
    }
