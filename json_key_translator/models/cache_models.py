"""Models for translation cache data.

Defines data classes for translation cache entries and cache statistics.
"""

from __future__ import annotations

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CacheStatistics",
    "TranslationCacheEntry",
]


@dataclass(frozen=True)
class TranslationCacheEntry:
    """Translation cache entry data.

    Attributes:
        original_key (str): Key name before translation.
        translated_key (str): Translated key name.
        source_lang (str): Source language code.
        target_lang (str): Target language code.
    """

    original_key: str
    translated_key: str
    source_lang: str
    target_lang: str


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheStatistics(DataClassJsonMixin):
    """Cache usage statistics.

    Attributes:
        size (int): Current number of entries.
        max_size (int): Capacity bound.
        hits (int): Lookups answered from the cache.
        misses (int): Lookups that found nothing.
        evictions (int): Entries dropped under capacity pressure.
    """

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        total: int = self.hits + self.misses
        return self.hits / total if total else 0.0
