"""Translation cache.

Bounded in-memory LRU cache of key translations, keyed by ``(key, source language, target language)``.
"""

from __future__ import annotations

import threading
import unicodedata
from collections import OrderedDict
from typing import TYPE_CHECKING, ClassVar, TypeAlias

from json_key_translator.models.cache_models import CacheStatistics, TranslationCacheEntry
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["TranslationCache"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CacheKey: TypeAlias = "tuple[str, str, str]"


class TranslationCache:
    """Least-recently-used cache of key translations.

    ``get`` hits and ``set`` calls promote an entry to most-recently-used; inserting a new entry into a
    full cache evicts exactly one least-recently-used entry. Every access holds a lock, so one cache can
    be shared by concurrent translation tasks (and threads) without corrupting the recency order.

    Attributes:
        DEFAULT_MAX_SIZE (ClassVar[int]): Capacity used when none is given.
    """

    DEFAULT_MAX_SIZE: ClassVar[int] = 1000

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        """Initialize an empty cache.

        Args:
            max_size (int): Maximum number of entries.

        Raises:
            ValueError: If ``max_size`` is smaller than 1.
        """
        if max_size < 1:
            msg: str = f"Cache size must be at least 1, got {max_size}"
            raise ValueError(msg)
        self._max_size: int = max_size
        self._entries: OrderedDict[CacheKey, TranslationCacheEntry] = OrderedDict()
        self._lock: threading.Lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0
        self._evictions: int = 0
        logger.debug("TranslationCache created (max_size=%d)", max_size)

    @property
    def max_size(self) -> int:
        return self._max_size

    def _cache_key(self, original_key: str, source_lang: str, target_lang: str) -> CacheKey:
        return (unicodedata.normalize("NFC", original_key), source_lang, target_lang)

    def get(self, original_key: str, source_lang: str, target_lang: str) -> str | None:
        """Look up a translation and mark it most-recently-used.

        Returns:
            str | None: The cached translation, or None on a miss.
        """
        cache_key: CacheKey = self._cache_key(original_key, source_lang, target_lang)
        with self._lock:
            entry: TranslationCacheEntry | None = self._entries.get(cache_key)
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(cache_key)
            self._hits += 1
            return entry.translated_key

    def set(self, original_key: str, translated_key: str, source_lang: str, target_lang: str) -> None:
        """Store a translation.

        An existing entry is refreshed and promoted without growing the cache. Otherwise, when the cache
        is full, the least-recently-used entry is evicted first.
        """
        cache_key: CacheKey = self._cache_key(original_key, source_lang, target_lang)
        entry = TranslationCacheEntry(
            original_key=original_key,
            translated_key=translated_key,
            source_lang=source_lang,
            target_lang=target_lang,
        )
        with self._lock:
            if cache_key in self._entries:
                self._entries.move_to_end(cache_key)
            elif len(self._entries) >= self._max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted LRU entry: '%s' (%s > %s)", *evicted_key)
            self._entries[cache_key] = entry

    def clear(self) -> None:
        """Drop every entry. Statistics counters are reset too."""
        with self._lock:
            self._entries.clear()
            self._hits = self._misses = self._evictions = 0
        logger.debug("TranslationCache cleared")

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def entries(self) -> list[TranslationCacheEntry]:
        """Snapshot of the entries from least- to most-recently-used."""
        with self._lock:
            return list(self._entries.values())

    def statistics(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                size=len(self._entries),
                max_size=self._max_size,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )
