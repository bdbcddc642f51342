"""Unit tests for the TTS cache stores."""

import sqlite3
import sys
from collections.abc import Iterator
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from moodvoice.cache.models import CacheEntry
from moodvoice.cache.storage import (
    DELETE_CHUNK_SIZE,
    InMemoryCacheStore,
    SQLiteCacheStore,
    TtsCacheStore,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


def make_entry(index: int, accessed_days_ago: int = 0, size: int = 100) -> CacheEntry:
    created = BASE_TIME - timedelta(days=30)
    return CacheEntry(
        key=f"{index:032x}",
        original_text=f"text {index}",
        voice="ARA",
        tone_snapshot='{"volume":0,"speed":0,"pitch":0,"alpha":0,"emotion":0,"emotionStrength":0}',
        audio_url=f"file:///audio/{index}.wav",
        file_name=f"tts_{index:08x}.wav",
        file_size_bytes=size,
        mime_type="audio/wav",
        created_at=created,
        last_accessed_at=BASE_TIME - timedelta(days=accessed_days_ago),
    )


@pytest.fixture(params=["sqlite", "memory"])
def store(request) -> Iterator[TtsCacheStore]:
    if request.param == "memory":
        yield InMemoryCacheStore()
        return
    with TemporaryDirectory() as temp_dir:
        yield SQLiteCacheStore(Path(temp_dir) / "cache")


class TestSaveAndLookup:
    """Saving entries and reading them back."""

    def test_lookup_missing_returns_none(self, store: TtsCacheStore) -> None:
        assert store.lookup("f" * 32) is None

    def test_save_then_lookup(self, store: TtsCacheStore) -> None:
        entry = make_entry(1)
        assert store.save(entry) == entry

        found = store.lookup(entry.key)

        assert found is not None
        assert found.audio_url == entry.audio_url
        assert found.file_size_bytes == 100
        assert found.created_at == entry.created_at

    def test_lookup_touches_entry(self, store: TtsCacheStore) -> None:
        entry = make_entry(1, accessed_days_ago=10)
        store.save(entry)

        found = store.lookup(entry.key)

        assert found.last_accessed_at > entry.last_accessed_at
        assert store.find_stale_since(BASE_TIME) == []

    def test_save_existing_key_keeps_first(self, store: TtsCacheStore) -> None:
        first = make_entry(1)
        second = replace(first, audio_url="file:///audio/other.wav")

        store.save(first)
        kept = store.save(second)

        assert kept.audio_url == first.audio_url
        assert store.count() == 1

    def test_touch_unknown_key_is_ignored(self, store: TtsCacheStore) -> None:
        store.touch("0" * 32, BASE_TIME)
        assert store.count() == 0


class TestStaleAndDelete:
    """Stale queries and deletion."""

    def test_find_stale_oldest_first(self, store: TtsCacheStore) -> None:
        for index, days in ((1, 5), (2, 40), (3, 20), (4, 0)):
            store.save(make_entry(index, accessed_days_ago=days))

        stale = store.find_stale_since(BASE_TIME - timedelta(days=10))

        assert [e.key for e in stale] == [f"{2:032x}", f"{3:032x}"]

    def test_delete(self, store: TtsCacheStore) -> None:
        store.save(make_entry(1))
        store.save(make_entry(2))

        store.delete(f"{1:032x}")

        assert store.count() == 1
        assert store.lookup(f"{1:032x}") is None

    def test_delete_batch_larger_than_chunk(self, store: TtsCacheStore) -> None:
        total = DELETE_CHUNK_SIZE * 2 + 5
        for index in range(total):
            store.save(make_entry(index))

        store.delete_batch([f"{i:032x}" for i in range(total - 1)])

        assert store.count() == 1

    def test_delete_batch_empty(self, store: TtsCacheStore) -> None:
        store.save(make_entry(1))
        store.delete_batch([])
        assert store.count() == 1


class TestStatistics:
    """Counts and sizes."""

    def test_counts_and_size(self, store: TtsCacheStore) -> None:
        store.save(make_entry(1, accessed_days_ago=1, size=100))
        store.save(make_entry(2, accessed_days_ago=3, size=250))
        store.save(make_entry(3, accessed_days_ago=10, size=50))

        assert store.count() == 3
        assert store.total_size_bytes() == 400
        assert store.count_created_between(
            BASE_TIME - timedelta(days=31), BASE_TIME
        ) == 3
        assert store.count_accessed_between(
            BASE_TIME - timedelta(days=5), BASE_TIME
        ) == 2

    def test_range_bounds_are_inclusive(self, store: TtsCacheStore) -> None:
        """Created and accessed ranges both include their endpoints."""
        entry = make_entry(1, accessed_days_ago=1)
        store.save(entry)

        assert store.count_created_between(entry.created_at, entry.created_at) == 1
        assert store.count_accessed_between(
            entry.last_accessed_at, entry.last_accessed_at
        ) == 1
        assert store.count_accessed_between(
            entry.last_accessed_at, BASE_TIME
        ) == 1
        assert store.count_accessed_between(
            BASE_TIME - timedelta(days=5), entry.last_accessed_at
        ) == 1

    def test_empty_store(self, store: TtsCacheStore) -> None:
        assert store.count() == 0
        assert store.total_size_bytes() == 0


class TestBestEffortTouch:
    """A failing access-time update never fails the lookup."""

    def test_lookup_survives_touch_failure(self) -> None:
        store = InMemoryCacheStore()
        entry = make_entry(1)
        store.save(entry)

        with patch.object(store, "touch", side_effect=RuntimeError("disk full")):
            found = store.lookup(entry.key)

        assert found == entry

    def test_sqlite_lookup_survives_touch_failure(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = SQLiteCacheStore(Path(temp_dir))
            entry = make_entry(1)
            store.save(entry)

            with patch.object(
                store, "touch", side_effect=sqlite3.OperationalError("locked")
            ):
                found = store.lookup(entry.key)

            assert found is not None
            assert found.last_accessed_at == entry.last_accessed_at


class TestSQLiteSchema:
    """SQLite specifics."""

    def test_database_uses_wal_and_unique_key(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = SQLiteCacheStore(Path(temp_dir) / "nested" / "cache")
            assert store.db_path.exists()

            conn = sqlite3.connect(store.db_path)
            try:
                mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
                indexes = conn.execute("PRAGMA index_list(tts_cache)").fetchall()
            finally:
                conn.close()

            assert mode == "wal"
            assert any(row[2] == 1 for row in indexes)
