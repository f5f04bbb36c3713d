"""Shared test fixtures for mimekv."""

import pytest
from mimekv.core.config import MimeKVConfig
from mimekv.engine import KeyValueEngine
from mimekv.media.classifier import MediaPolicy
from mimekv.store.memory import InMemoryRecordStore


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return MimeKVConfig()


@pytest.fixture
def memory_store():
    """Create a fresh in-memory store."""
    return InMemoryRecordStore()


@pytest.fixture
def engine(memory_store):
    """Create an engine over an in-memory store with the default policy."""
    return KeyValueEngine(memory_store)


@pytest.fixture
def permissive_engine():
    """Engine that stores application/octet-stream."""
    return KeyValueEngine(
        InMemoryRecordStore(),
        policy=MediaPolicy(allow_octet_stream=True),
    )
