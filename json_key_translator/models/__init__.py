"""Data models for schemas, configuration, cache entries and translation results."""

from json_key_translator.models.cache_models import CacheStatistics, TranslationCacheEntry
from json_key_translator.models.config_models import Config
from json_key_translator.models.schema_models import JsonValue, KeyMap, SchemaBuildError, StructuralSchema
from json_key_translator.models.translation_models import (
    KeyTranslationResult,
    OperationResult,
    TranslationOptions,
    TranslationResult,
)

__all__: list[str] = [
    "CacheStatistics",
    "Config",
    "JsonValue",
    "KeyMap",
    "KeyTranslationResult",
    "OperationResult",
    "SchemaBuildError",
    "StructuralSchema",
    "TranslationCacheEntry",
    "TranslationOptions",
    "TranslationResult",
]
