"""Public key translation operations.

A run goes through three steps: build the structural schema of the document, obtain a translated
schema (from a whole-schema function or key by key through an engine) and reconcile the two into a
key map, then rewrite the document with that map. Each step is available on its own so that callers
can persist the key map, or translate the schema out of process and apply it later.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Self

from json_key_translator.core.cache.manager import TranslationCache
from json_key_translator.core.schema import (
    apply_key_map,
    build_schema,
    extract_keys,
    extract_schema_keys,
    generate_schema,
    merge_key_translations,
    reconcile,
    rename_schema_keys,
)
from json_key_translator.core.trans import BackendError, InvalidOperationError, TransManager, create_engine
from json_key_translator.models.config_models import Config
from json_key_translator.models.schema_models import SchemaBuildError, StructuralSchema
from json_key_translator.models.translation_models import (
    KeyTranslationResult,
    OperationResult,
    SchemaTranslationFn,
    TranslationOptions,
    TranslationResult,
)
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.core.trans.interface import TransInterface
    from json_key_translator.models.cache_models import CacheStatistics
    from json_key_translator.models.schema_models import JsonValue, KeyMap

__all__: list[str] = [
    "JsonKeyTranslator",
    "Operation",
    "apply_translated_keys",
    "apply_translated_schema",
    "build_trans_manager",
    "generate_schema",
    "handle_operation",
    "translate_json_keys",
    "translate_keys",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class Operation(StrEnum):
    """Steps accepted by :func:`handle_operation`."""

    GENERATE_SCHEMA = "generateSchema"
    APPLY_TRANSLATION = "applyTranslation"


def build_trans_manager(options: TranslationOptions) -> TransManager:
    """Create a TransManager for the options' engine, falling back to the identity engine."""
    engine: TransInterface = options.engine or create_engine("identity", Config())
    cache: TranslationCache | None = TranslationCache(options.max_cache_size) if options.use_cache else None
    return TransManager(
        engine,
        source_lang=options.source_language,
        target_lang=options.target_language,
        cache=cache,
        batch_size=options.batch_size,
        max_concurrency=options.max_concurrency,
    )


async def _translate_schema_atomically(
    schema: StructuralSchema, translation_fn: SchemaTranslationFn, options: TranslationOptions
) -> StructuralSchema:
    """Send the whole schema to the schema translation function.

    Raises:
        BackendError: If the function fails or returns something that is not a schema.
    """
    msg: str
    try:
        translated: Any = translation_fn(schema.to_dict(), options)
        if inspect.isawaitable(translated):
            translated = await translated
    except BackendError:
        raise
    except Exception as err:
        msg = "Schema translation function failed"
        raise BackendError(msg) from err

    if not isinstance(translated, Mapping):
        msg = f"Schema translation function returned {type(translated).__name__}, expected a mapping"
        raise BackendError(msg)
    try:
        return StructuralSchema.from_dict(translated)
    except SchemaBuildError as err:
        msg = f"Schema translation function returned a malformed schema: {err}"
        raise BackendError(msg) from err


async def translate_keys(
    schema: StructuralSchema | dict[str, Any],
    options: TranslationOptions | None = None,
    *,
    manager: TransManager | None = None,
) -> KeyTranslationResult:
    """Translate the keys of a structural schema and derive the key map.

    With ``options.translation_fn`` the schema is translated in one call and any failure aborts the
    run. Otherwise every key not covered by ``options.key_map`` is translated through the engine;
    keys that fail keep their original name.

    Args:
        schema (StructuralSchema | dict[str, Any]): Schema produced by :func:`generate_schema`.
        options (TranslationOptions | None): Run options. Defaults apply when None.
        manager (TransManager | None): Reused manager (cache and engine) in key mode.

    Returns:
        KeyTranslationResult: The key map, with seed entries preserved, and the translated schema.

    Raises:
        BackendError: If the whole-schema translation fails.
        SchemaBuildError: If ``schema`` is malformed.
    """
    options = options or TranslationOptions()
    original: StructuralSchema = StructuralSchema.from_dict(schema)

    if options.translation_fn is not None:
        logger.info("Translating schema in one request (%s > %s)", options.source_language, options.target_language)
        translated: StructuralSchema = await _translate_schema_atomically(original, options.translation_fn, options)
    else:
        manager = manager or build_trans_manager(options)
        pending: list[str] = [key for key in extract_schema_keys(original) if key not in options.key_map]
        logger.info(
            "Translating %d schema keys (%s > %s)", len(pending), options.source_language, options.target_language
        )
        translations: dict[str, str] = await manager.translate_keys(pending)
        translated = rename_schema_keys(original, {**translations, **options.key_map})

    key_map: KeyMap = reconcile(original, translated, options.key_map)
    return KeyTranslationResult(key_map=key_map, translated_schema=translated.to_dict())


def apply_translated_keys(json: JsonValue, key_map: Mapping[str, str], preserve_original: bool = False) -> JsonValue:  # noqa: FBT001, FBT002
    """Rewrite a document with a key map; the input is left untouched."""
    return apply_key_map(json, key_map, preserve_original)


def apply_translated_schema(
    json: JsonValue,
    translated_schema: StructuralSchema | dict[str, Any] | None,
    preserve_original: bool = False,  # noqa: FBT001, FBT002
    *,
    key_map: Mapping[str, str] | None = None,
) -> TranslationResult:
    """Rewrite a document with a schema that was translated elsewhere.

    The document's own schema is rebuilt and reconciled against ``translated_schema``.

    Args:
        json (JsonValue): The original document.
        translated_schema (StructuralSchema | dict[str, Any] | None): Translated counterpart of the
            document's schema.
        preserve_original (bool): Keep the original keys next to the translated ones.
        key_map (Mapping[str, str] | None): Seed entries that take precedence over reconciliation.

    Raises:
        InvalidOperationError: If ``translated_schema`` is None.
        SchemaBuildError: If the document or the translated schema is malformed.
    """
    if translated_schema is None:
        msg = "A translated schema is required to apply a translation"
        raise InvalidOperationError(msg)

    resolved: KeyMap = reconcile(build_schema(json), translated_schema, key_map)
    return TranslationResult(translated_json=apply_key_map(json, resolved, preserve_original), key_map=resolved)


async def translate_json_keys(
    json: JsonValue,
    options: TranslationOptions | None = None,
    *,
    manager: TransManager | None = None,
) -> TranslationResult:
    """Translate every key of a document.

    Chains :func:`generate_schema`, :func:`translate_keys` and :func:`apply_translated_keys`. In key
    mode the keys found only in later array elements, which the schema does not describe, are
    translated as well. Such a key keeps its name when its translation would clash with a key next to it.

    Raises:
        BackendError: If the whole-schema translation fails.
        SchemaBuildError: If ``json`` is not a JSON value.
    """
    options = options or TranslationOptions()
    schema: StructuralSchema = build_schema(json)

    if options.translation_fn is not None:
        result: KeyTranslationResult = await translate_keys(schema, options)
        key_map: KeyMap = result.key_map
    else:
        manager = manager or build_trans_manager(options)
        result = await translate_keys(schema, options, manager=manager)
        key_map = dict(result.key_map)
        remaining: list[str] = [key for key in extract_keys(json) if key not in key_map]
        if remaining:
            logger.debug("Translating %d keys outside the schema", len(remaining))
            key_map = merge_key_translations(json, key_map, await manager.translate_keys(remaining))

    translated_json: JsonValue = apply_key_map(json, key_map, options.preserve_original_keys)
    logger.info("Translated document keys: %d mappings", len(key_map))
    return TranslationResult(translated_json=translated_json, key_map=key_map)


def handle_operation(
    operation: Operation | str,
    json: JsonValue,
    translated_schema: dict[str, Any] | None = None,
    preserve_original_keys: bool = False,  # noqa: FBT001, FBT002
) -> OperationResult:
    """Run one step of the two-step flow where the schema is translated by an outside service.

    ``"generateSchema"`` returns the document's schema; ``"applyTranslation"`` rewrites the document
    with the translated schema and returns the key map that was used.

    Raises:
        InvalidOperationError: For an unknown operation, or ``applyTranslation`` without a translated schema.
    """
    logger.info("Performing operation: %s", operation)
    match operation:
        case Operation.GENERATE_SCHEMA:
            return OperationResult(result=generate_schema(json), original_json=json)
        case Operation.APPLY_TRANSLATION:
            applied: TranslationResult = apply_translated_schema(json, translated_schema, preserve_original_keys)
            return OperationResult(result=applied.translated_json, key_map=applied.key_map)
        case _:
            msg: str = f"Invalid operation: {operation}"
            raise InvalidOperationError(msg)


class JsonKeyTranslator:
    """Reusable translator keeping one engine and one cache across runs.

    Use it as an async context manager, or call :meth:`close` when done. An engine created by
    :meth:`from_config` is closed with the translator; an engine passed in the options is not.
    """

    def __init__(self, options: TranslationOptions | None = None, *, owns_engine: bool = False) -> None:
        self.options: TranslationOptions = options or TranslationOptions()
        self._owns_engine: bool = owns_engine or self.options.engine is None
        self._manager: TransManager | None = (
            build_trans_manager(self.options) if self.options.translation_fn is None else None
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        engine_kwargs: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> Self:
        """Create a translator from a loaded configuration.

        The engine named by ``TRANSLATION.ENGINE`` is created unless ``engine`` or ``translation_fn``
        is given in ``overrides``.

        Args:
            config (Config): Loaded configuration.
            engine_kwargs (dict[str, Any] | None): Passed to the engine constructor
                (e.g. ``translator_fn`` for the ``custom`` engine).
            **overrides: TranslationOptions fields overriding the configuration.

        Raises:
            InvalidOperationError: If the configured engine is unknown or cannot be set up.
            BackendError: If the engine fails to initialize.
        """
        owns_engine: bool = False
        if overrides.get("engine") is None and overrides.get("translation_fn") is None:
            overrides["engine"] = create_engine(config.TRANSLATION.ENGINE, config, **(engine_kwargs or {}))
            owns_engine = True
        return cls(TranslationOptions.from_config(config, **overrides), owns_engine=owns_engine)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    async def translate_keys(self, schema: StructuralSchema | dict[str, Any]) -> KeyTranslationResult:
        return await translate_keys(schema, self.options, manager=self._manager)

    async def translate_json_keys(self, json: JsonValue) -> TranslationResult:
        return await translate_json_keys(json, self.options, manager=self._manager)

    def apply_translated_keys(self, json: JsonValue, key_map: Mapping[str, str]) -> JsonValue:
        return apply_key_map(json, key_map, self.options.preserve_original_keys)

    def clear_cache(self) -> None:
        if self._manager is not None:
            self._manager.clear_cache()

    def cache_statistics(self) -> CacheStatistics | None:
        return self._manager.cache_statistics() if self._manager is not None else None

    async def close(self) -> None:
        if self._manager is not None:
            await self._manager.close(close_engine=self._owns_engine)
        logger.debug("'%s' process termination", self.__class__.__name__)
