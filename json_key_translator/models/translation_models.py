"""Models for key translation runs.

Defines the run options and the result objects returned by the public operations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, TypeAlias

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

if TYPE_CHECKING:
    from json_key_translator.core.trans.interface import TransInterface
    from json_key_translator.models.config_models import Config

__all__: list[str] = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_CACHE_SIZE",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "SCHEMA_BATCH_SIZE",
    "KeyTranslationResult",
    "OperationResult",
    "SchemaTranslationFn",
    "TranslationOptions",
    "TranslationResult",
]

DEFAULT_SOURCE_LANGUAGE: Final[str] = "en"
DEFAULT_TARGET_LANGUAGE: Final[str] = "zh"
DEFAULT_MAX_CACHE_SIZE: Final[int] = 1000
DEFAULT_BATCH_SIZE: Final[int] = 10
SCHEMA_BATCH_SIZE: Final[int] = 50  # batch size for callers translating whole schemas at once
DEFAULT_MAX_CONCURRENCY: Final[int] = 4

# (schema dict, options) -> translated schema dict, sync or async.
SchemaTranslationFn: TypeAlias = "Callable[[dict[str, Any], TranslationOptions], dict[str, Any] | Awaitable[dict[str, Any]]]"


@dataclass
class TranslationOptions:
    """Options recognised by the key translation operations.

    Attributes:
        source_language (str): Source language code.
        target_language (str): Target language code.
        translation_fn (SchemaTranslationFn | None): Whole-schema translator. When set, the run is atomic:
            a failure aborts it and no key map is returned.
        engine (TransInterface | None): Per-key backend used when ``translation_fn`` is not set.
            The identity engine is used when both are None.
        key_map (dict[str, str]): Seed map. Its entries are never overwritten by reconciliation.
        use_cache (bool): Cache per-key translations.
        max_cache_size (int): Capacity of the LRU cache.
        batch_size (int): Number of keys per backend batch request.
        max_concurrency (int): Number of batch requests allowed in flight at once.
        preserve_original_keys (bool): Keep the original key next to the translated one when rewriting.
    """

    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE
    translation_fn: SchemaTranslationFn | None = None
    engine: TransInterface | None = None
    key_map: dict[str, str] = field(default_factory=dict)
    use_cache: bool = True
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    preserve_original_keys: bool = False

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> TranslationOptions:
        """Build options from the TRANSLATION section of a loaded configuration.

        The engine itself is not created here; pass ``engine=`` or ``translation_fn=`` as an override.
        """
        translation = config.TRANSLATION
        options = cls(
            source_language=translation.SOURCE_LANGUAGE,
            target_language=translation.TARGET_LANGUAGE,
            use_cache=translation.USE_CACHE,
            max_cache_size=translation.MAX_CACHE_SIZE,
            batch_size=translation.BATCH_SIZE,
            max_concurrency=translation.MAX_CONCURRENCY,
            preserve_original_keys=translation.PRESERVE_ORIGINAL_KEYS,
        )
        for name, value in overrides.items():
            if not hasattr(options, name):
                msg: str = f"Unknown translation option: '{name}'"
                raise TypeError(msg)
            setattr(options, name, value)
        return options


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class KeyTranslationResult(DataClassJsonMixin):
    """Key map and the translated schema it was reconciled against."""

    key_map: dict[str, str]
    translated_schema: dict[str, Any]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class TranslationResult(DataClassJsonMixin):
    """Output of a full translate-and-apply cycle.

    Attributes:
        translated_json (Any): Rewritten document; a new object graph, never the input.
        key_map (dict[str, str]): Key map used for the rewrite. Persist it to skip retranslation later.
    """

    translated_json: Any
    key_map: dict[str, str]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class OperationResult(DataClassJsonMixin):
    """Output of the two-step operation dispatcher."""

    result: Any
    original_json: Any = None
    key_map: dict[str, str] | None = None
