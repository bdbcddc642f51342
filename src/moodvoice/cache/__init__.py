"""TTS cache: key derivation, entry model and stores."""

from .keys import DEFAULT_AUDIO_FORMAT, derive_cache_key
from .models import CacheEntry
from .storage import InMemoryCacheStore, SQLiteCacheStore, TtsCacheStore

__all__ = [
    "DEFAULT_AUDIO_FORMAT",
    "CacheEntry",
    "InMemoryCacheStore",
    "SQLiteCacheStore",
    "TtsCacheStore",
    "derive_cache_key",
]
