"""Translate the keys of JSON documents while keeping their structure and values."""

from json_key_translator.core.schema import SchemaBuildError
from json_key_translator.core.trans import (
    BackendError,
    InvalidOperationError,
    NotSupportedLanguagesError,
    TransInterface,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    create_engine,
)
from json_key_translator.models.translation_models import (
    KeyTranslationResult,
    OperationResult,
    TranslationOptions,
    TranslationResult,
)
from json_key_translator.translator import (
    JsonKeyTranslator,
    Operation,
    apply_translated_keys,
    apply_translated_schema,
    generate_schema,
    handle_operation,
    translate_json_keys,
    translate_keys,
)

__version__: str = "0.1.0"

__all__: list[str] = [
    "BackendError",
    "InvalidOperationError",
    "JsonKeyTranslator",
    "KeyTranslationResult",
    "NotSupportedLanguagesError",
    "Operation",
    "OperationResult",
    "SchemaBuildError",
    "TransInterface",
    "TranslationOptions",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
    "TranslationResult",
    "apply_translated_keys",
    "apply_translated_schema",
    "create_engine",
    "generate_schema",
    "handle_operation",
    "translate_json_keys",
    "translate_keys",
]
