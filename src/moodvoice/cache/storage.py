"""TTS cache store interface with SQLite and in-memory implementations."""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .models import CacheEntry

logger = logging.getLogger(__name__)

DELETE_CHUNK_SIZE = 100


class TtsCacheStore(ABC):
    """Key-value store of synthesized audio entries.

    Keys are unique. An entry is written once by save(); afterwards only
    its last_accessed_at changes, through touch().
    """

    def lookup(self, key: str) -> CacheEntry | None:
        """Fetch an entry and record the access.

        The access-time update is best effort: a failing touch is logged and
        the entry is still returned.

        Args:
            key: Cache key to look up

        Returns:
            The entry (with the new access time if the touch succeeded), or None
        """
        entry = self._fetch(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None

        now = datetime.now()
        try:
            self.touch(key, now)
        except Exception as e:
            logger.warning(f"Failed to update access time for {key}: {e}")
            return entry

        logger.debug(f"Cache hit: {key} ({entry.file_name})")
        return replace(entry, last_accessed_at=now)

    @abstractmethod
    def _fetch(self, key: str) -> CacheEntry | None:
        """Read an entry without side effects."""
        pass

    @abstractmethod
    def save(self, entry: CacheEntry) -> CacheEntry:
        """Store a new entry.

        Atomic per key: if the key already exists the stored entry is kept
        and returned unchanged.

        Returns:
            The entry now held by the store
        """
        pass

    @abstractmethod
    def touch(self, key: str, accessed_at: datetime) -> None:
        """Set last_accessed_at for key; unknown keys are ignored."""
        pass

    @abstractmethod
    def find_stale_since(self, threshold: datetime) -> list[CacheEntry]:
        """Entries last accessed before threshold, oldest first."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def delete_batch(self, keys: Sequence[str]) -> None:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def count_created_between(self, start: datetime, end: datetime) -> int:
        pass

    @abstractmethod
    def count_accessed_between(self, start: datetime, end: datetime) -> int:
        pass

    @abstractmethod
    def total_size_bytes(self) -> int:
        pass


class SQLiteCacheStore(TtsCacheStore):
    """SQLite-based cache store.

    Stores entry metadata in a SQLite database; the audio itself lives in
    the blob store and is referenced by URL.
    """

    _COLUMNS = (
        "cache_key, original_text, voice, tone_snapshot, audio_url, file_name, "
        "file_size_bytes, mime_type, created_at, last_accessed_at"
    )

    def __init__(self, cache_dir: Path):
        """Initialize cache store with database in given directory.

        Args:
            cache_dir: Directory containing cache database
        """
        self.cache_dir = cache_dir

        # Create cache directory if it doesn't exist
        cache_dir.mkdir(parents=True, exist_ok=True)

        self.db_path = cache_dir / "tts_cache.db"

        self._init_db_with_wal()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with WAL mode for concurrency."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=30.0,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_db_with_wal(self) -> None:
        """Initialize database with WAL mode and schema."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tts_cache (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    cache_key TEXT NOT NULL UNIQUE,
                    original_text TEXT NOT NULL,
                    voice TEXT NOT NULL,
                    tone_snapshot TEXT NOT NULL,
                    audio_url TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    file_size_bytes INTEGER NOT NULL,
                    mime_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    last_accessed_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_last_accessed
                ON tts_cache(last_accessed_at)
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        # Convert stored strings back to proper types
        return CacheEntry(
            key=row["cache_key"],
            original_text=row["original_text"],
            voice=row["voice"],
            tone_snapshot=row["tone_snapshot"],
            audio_url=row["audio_url"],
            file_name=row["file_name"],
            file_size_bytes=row["file_size_bytes"],
            mime_type=row["mime_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
            last_accessed_at=datetime.fromisoformat(row["last_accessed_at"]),
        )

    def _fetch(self, key: str) -> CacheEntry | None:
        conn = self._get_connection()
        try:
            row = conn.execute(
                f"SELECT {self._COLUMNS} FROM tts_cache WHERE cache_key = ?",
                (key,),
            ).fetchone()
        finally:
            conn.close()
        return None if row is None else self._row_to_entry(row)

    def save(self, entry: CacheEntry) -> CacheEntry:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                f"""
                INSERT INTO tts_cache ({self._COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(cache_key) DO NOTHING
                """,
                (
                    entry.key,
                    entry.original_text,
                    entry.voice,
                    entry.tone_snapshot,
                    entry.audio_url,
                    entry.file_name,
                    entry.file_size_bytes,
                    entry.mime_type,
                    entry.created_at.isoformat(),
                    entry.last_accessed_at.isoformat(),
                ),
            )
            conn.commit()
            inserted = cursor.rowcount == 1
        finally:
            conn.close()

        if inserted:
            logger.info(
                f"Saved cache entry {entry.key} ({entry.file_name}, "
                f"{entry.file_size_bytes} bytes)"
            )
            return entry

        logger.info(f"Cache entry {entry.key} already exists, keeping stored entry")
        stored = self._fetch(entry.key)
        return stored if stored is not None else entry

    def touch(self, key: str, accessed_at: datetime) -> None:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "UPDATE tts_cache SET last_accessed_at = ? WHERE cache_key = ?",
                (accessed_at.isoformat(), key),
            )
            conn.commit()
            if cursor.rowcount == 0:
                logger.warning(f"Access time not updated, no entry for {key}")
        finally:
            conn.close()

    def find_stale_since(self, threshold: datetime) -> list[CacheEntry]:
        conn = self._get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT {self._COLUMNS} FROM tts_cache
                WHERE last_accessed_at < ?
                ORDER BY last_accessed_at ASC
                """,
                (threshold.isoformat(),),
            ).fetchall()
        finally:
            conn.close()
        entries = [self._row_to_entry(row) for row in rows]
        logger.info(f"Found {len(entries)} cache entries not accessed since {threshold}")
        return entries

    def delete(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM tts_cache WHERE cache_key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
        logger.info(f"Deleted cache entry {key}")

    def delete_batch(self, keys: Sequence[str]) -> None:
        if not keys:
            logger.debug("No cache keys to delete")
            return

        conn = self._get_connection()
        try:
            for start in range(0, len(keys), DELETE_CHUNK_SIZE):
                chunk = list(keys[start : start + DELETE_CHUNK_SIZE])
                placeholders = ", ".join("?" for _ in chunk)
                conn.execute(
                    f"DELETE FROM tts_cache WHERE cache_key IN ({placeholders})",
                    chunk,
                )
                logger.debug(
                    f"Deleted cache chunk {start + len(chunk)}/{len(keys)}"
                )
            conn.commit()
        finally:
            conn.close()
        logger.info(f"Deleted {len(keys)} cache entries")

    def _scalar(self, query: str, params: tuple = ()) -> int:
        conn = self._get_connection()
        try:
            row = conn.execute(query, params).fetchone()
        finally:
            conn.close()
        return int(row[0] or 0)

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM tts_cache")

    def count_created_between(self, start: datetime, end: datetime) -> int:
        return self._scalar(
            "SELECT COUNT(*) FROM tts_cache WHERE created_at BETWEEN ? AND ?",
            (start.isoformat(), end.isoformat()),
        )

    def count_accessed_between(self, start: datetime, end: datetime) -> int:
        return self._scalar(
            "SELECT COUNT(*) FROM tts_cache WHERE last_accessed_at BETWEEN ? AND ?",
            (start.isoformat(), end.isoformat()),
        )

    def total_size_bytes(self) -> int:
        return self._scalar("SELECT COALESCE(SUM(file_size_bytes), 0) FROM tts_cache")


class InMemoryCacheStore(TtsCacheStore):
    """Process-local cache store, used in tests and single-process setups."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _fetch(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def save(self, entry: CacheEntry) -> CacheEntry:
        with self._lock:
            stored = self._entries.setdefault(entry.key, entry)
        if stored is entry:
            logger.info(f"Saved cache entry {entry.key} ({entry.file_name})")
        else:
            logger.info(f"Cache entry {entry.key} already exists, keeping stored entry")
        return stored

    def touch(self, key: str, accessed_at: datetime) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.warning(f"Access time not updated, no entry for {key}")
                return
            self._entries[key] = replace(entry, last_accessed_at=accessed_at)

    def find_stale_since(self, threshold: datetime) -> list[CacheEntry]:
        with self._lock:
            stale = [e for e in self._entries.values() if e.is_stale(threshold)]
        return sorted(stale, key=lambda e: e.last_accessed_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_batch(self, keys: Sequence[str]) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def count_created_between(self, start: datetime, end: datetime) -> int:
        with self._lock:
            return sum(
                1 for e in self._entries.values() if start <= e.created_at <= end
            )

    def count_accessed_between(self, start: datetime, end: datetime) -> int:
        with self._lock:
            return sum(
                1
                for e in self._entries.values()
                if start <= e.last_accessed_at <= end
            )

    def total_size_bytes(self) -> int:
        with self._lock:
            return sum(e.file_size_bytes for e in self._entries.values())
