"""Translation engine management and interfaces.

Importing this package registers the bundled engines with `TransInterface`.
"""

from json_key_translator.core.trans import engines  # noqa: F401
from json_key_translator.core.trans.interface import (
    BackendError,
    EngineAttributes,
    InvalidOperationError,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    create_engine,
)
from json_key_translator.core.trans.manager import TransManager

__all__: list[str] = [
    "BackendError",
    "EngineAttributes",
    "InvalidOperationError",
    "NotSupportedLanguagesError",
    "Result",
    "TransInterface",
    "TransManager",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
    "create_engine",
]
