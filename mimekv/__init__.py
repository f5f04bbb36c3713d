"""
mimekv — a content-type-aware key-value store over HTTP.

Public API:
    from mimekv import KeyValueEngine, InMemoryRecordStore, classify
"""

__version__ = "0.1.0"

from mimekv.core.config import MimeKVConfig
from mimekv.core.errors import (
    BadMediaTypeError,
    ConfigError,
    KeyNotFoundError,
    MimeKVError,
    NotAcceptableError,
    StorageError,
)
from mimekv.engine import KeyValueEngine, Response
from mimekv.media.classifier import (
    Classification,
    MediaClass,
    MediaPolicy,
    classify,
    is_acceptable,
)
from mimekv.store.base import Record, RecordStore
from mimekv.store.memory import InMemoryRecordStore

__all__ = [
    # Core
    "MimeKVConfig",
    "MimeKVError",
    "ConfigError",
    "StorageError",
    "KeyNotFoundError",
    "NotAcceptableError",
    "BadMediaTypeError",
    # Media
    "Classification",
    "MediaClass",
    "MediaPolicy",
    "classify",
    "is_acceptable",
    # Storage
    "Record",
    "RecordStore",
    "InMemoryRecordStore",
    # Engine
    "KeyValueEngine",
    "Response",
]
