from __future__ import annotations

import copy
from typing import Any

import pytest

from json_key_translator import (
    BackendError,
    InvalidOperationError,
    JsonKeyTranslator,
    Operation,
    SchemaBuildError,
    TranslationOptions,
    apply_translated_keys,
    apply_translated_schema,
    create_engine,
    generate_schema,
    handle_operation,
    translate_json_keys,
    translate_keys,
)
from json_key_translator.models.config_models import Config

GLOSSARY: dict[str, str] = {
    "user": "用户",
    "name": "姓名",
    "items": "项目",
    "id": "编号",
    "extra": "额外",
    "tags": "标签",
}


def rename_schema(node: dict[str, Any]) -> dict[str, Any]:
    """Translate a schema dict the way an outside service would."""
    if "properties" in node:
        return {
            "type": "object",
            "properties": {GLOSSARY.get(key, key): rename_schema(member) for key, member in node["properties"].items()},
        }
    if "items" in node:
        return {"type": "array", "items": rename_schema(node["items"])}
    return dict(node)


def glossary_fn(text: str, src_lang: str | None, tgt_lang: str) -> str:
    _ = src_lang, tgt_lang
    return GLOSSARY[text]


@pytest.fixture
def document() -> dict[str, Any]:
    return {"user": {"name": "John", "tags": ["a", "b"]}, "items": [{"id": 1}, {"id": 2, "extra": True}]}


@pytest.mark.asyncio
async def test_schema_function_round_trip() -> None:
    calls: list[tuple[dict[str, Any], TranslationOptions]] = []

    def translation_fn(schema: dict[str, Any], options: TranslationOptions) -> dict[str, Any]:
        calls.append((schema, options))
        return rename_schema(schema)

    options = TranslationOptions(target_language="zh", translation_fn=translation_fn)

    result = await translate_json_keys({"user": {"name": "John"}}, options)

    assert result.translated_json == {"用户": {"姓名": "John"}}
    assert result.key_map == {"user": "用户", "name": "姓名"}
    assert calls[0][0] == generate_schema({"user": {"name": "John"}})
    assert calls[0][1] is options


@pytest.mark.asyncio
async def test_async_schema_function() -> None:
    async def translation_fn(schema: dict[str, Any], options: TranslationOptions) -> dict[str, Any]:
        _ = options
        return rename_schema(schema)

    result = await translate_keys(generate_schema({"id": 1}), TranslationOptions(translation_fn=translation_fn))

    assert result.key_map == {"id": "编号"}
    assert result.translated_schema == {"type": "object", "properties": {"编号": {"type": "number"}}}


def failing_schema_fn(schema: dict[str, Any], options: TranslationOptions) -> dict[str, Any]:
    msg = "service down"
    raise RuntimeError(msg)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "translation_fn",
    [
        failing_schema_fn,
        lambda schema, options: ["not", "a", "schema"],
        lambda schema, options: {"type": "tuple"},
    ],
)
async def test_schema_function_failure_aborts_run(translation_fn: Any, document: dict[str, Any]) -> None:
    with pytest.raises(BackendError):
        await translate_json_keys(document, TranslationOptions(translation_fn=translation_fn))


@pytest.mark.asyncio
async def test_schema_function_backend_error_propagates_unchanged() -> None:
    error = BackendError("quota")

    def translation_fn(schema: dict[str, Any], options: TranslationOptions) -> dict[str, Any]:
        raise error

    with pytest.raises(BackendError) as excinfo:
        await translate_keys(generate_schema({"a": "b"}), TranslationOptions(translation_fn=translation_fn))

    assert excinfo.value is error


@pytest.mark.asyncio
async def test_key_mode_translates_keys_of_later_array_elements(document: dict[str, Any]) -> None:
    engine = create_engine("custom", Config(), translator_fn=glossary_fn)

    result = await translate_json_keys(document, TranslationOptions(engine=engine))

    assert result.translated_json == {
        "用户": {"姓名": "John", "标签": ["a", "b"]},
        "项目": [{"编号": 1}, {"编号": 2, "额外": True}],
    }
    assert result.key_map["extra"] == "额外"


@pytest.mark.asyncio
async def test_later_array_key_keeps_name_on_sibling_clash(caplog: pytest.LogCaptureFixture) -> None:
    def translator_fn(text: str, src_lang: str | None, tgt_lang: str) -> str:
        return {"a": "X", "b": "X"}.get(text, text)

    engine = create_engine("custom", Config(), translator_fn=translator_fn)
    document = {"items": [{"a": 1}, {"a": 1, "b": 2}]}

    result = await translate_json_keys(document, TranslationOptions(engine=engine))

    assert result.translated_json == {"items": [{"X": 1}, {"X": 1, "b": 2}]}
    assert result.key_map["a"] == "X"
    assert result.key_map["b"] == "b"
    assert any("collides with a sibling key" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_input_document_is_not_modified(document: dict[str, Any]) -> None:
    snapshot = copy.deepcopy(document)
    engine = create_engine("custom", Config(), translator_fn=glossary_fn)

    await translate_json_keys(document, TranslationOptions(engine=engine))

    assert document == snapshot


@pytest.mark.asyncio
async def test_seed_map_is_preserved_and_not_retranslated() -> None:
    requested: list[str] = []

    def translator_fn(text: str, src_lang: str | None, tgt_lang: str) -> str:
        requested.append(text)
        return GLOSSARY[text]

    engine = create_engine("custom", Config(), translator_fn=translator_fn)
    options = TranslationOptions(engine=engine, key_map={"name": "名字"})

    result = await translate_json_keys({"user": {"name": "John"}}, options)

    assert result.key_map == {"name": "名字", "user": "用户"}
    assert result.translated_json == {"用户": {"名字": "John"}}
    assert requested == ["user"]


@pytest.mark.asyncio
async def test_failed_keys_keep_their_name() -> None:
    def translator_fn(text: str, src_lang: str | None, tgt_lang: str) -> str:
        if text == "name":
            raise ConnectionError("backend unavailable")
        return GLOSSARY[text]

    engine = create_engine("custom", Config(), translator_fn=translator_fn)

    result = await translate_json_keys({"user": {"name": "John"}}, TranslationOptions(engine=engine))

    assert result.translated_json == {"用户": {"name": "John"}}
    assert result.key_map == {"user": "用户", "name": "name"}


@pytest.mark.asyncio
async def test_identity_engine_is_the_default(document: dict[str, Any]) -> None:
    result = await translate_json_keys(document)

    assert result.translated_json == document
    assert result.key_map == {key: key for key in ("user", "name", "tags", "items", "id", "extra")}


@pytest.mark.asyncio
async def test_preserve_original_keys() -> None:
    engine = create_engine("custom", Config(), translator_fn=glossary_fn)
    options = TranslationOptions(engine=engine, preserve_original_keys=True)

    result = await translate_json_keys({"id": 7}, options)

    assert result.translated_json == {"id": 7, "编号": 7}


@pytest.mark.asyncio
async def test_primitive_documents_pass_through() -> None:
    result = await translate_json_keys("plain")

    assert result.translated_json == "plain"
    assert result.key_map == {}


@pytest.mark.asyncio
async def test_non_json_input_is_rejected() -> None:
    with pytest.raises(SchemaBuildError):
        await translate_json_keys({"when": object()})


def test_apply_translated_keys_returns_new_document(document: dict[str, Any]) -> None:
    snapshot = copy.deepcopy(document)

    translated = apply_translated_keys(document, {"id": "编号"})

    assert translated["items"] == [{"编号": 1}, {"编号": 2, "extra": True}]
    assert document == snapshot


def test_apply_translated_schema_requires_schema() -> None:
    with pytest.raises(InvalidOperationError):
        apply_translated_schema({"a": 1}, None)


def test_apply_translated_schema_with_seed() -> None:
    translated_schema = rename_schema(generate_schema({"user": {"name": "John"}}))

    result = apply_translated_schema({"user": {"name": "John"}}, translated_schema, key_map={"user": "member"})

    assert result.translated_json == {"member": {"姓名": "John"}}
    assert result.key_map == {"user": "member", "name": "姓名"}


def test_handle_operation_two_step_flow(document: dict[str, Any]) -> None:
    generated = handle_operation("generateSchema", document)
    translated_schema = rename_schema(generated.result)

    applied = handle_operation("applyTranslation", document, translated_schema)

    assert generated.original_json is document
    assert generated.result == generate_schema(document)
    assert applied.result["用户"] == {"姓名": "John", "标签": ["a", "b"]}
    assert applied.key_map is not None
    assert applied.key_map["items"] == "项目"


def test_handle_operation_preserve_original_keys() -> None:
    translated_schema = {"type": "object", "properties": {"编号": {"type": "number"}}}

    applied = handle_operation("applyTranslation", {"id": 1}, translated_schema, preserve_original_keys=True)

    assert applied.result == {"id": 1, "编号": 1}


def test_handle_operation_accepts_operation_members(document: dict[str, Any]) -> None:
    generated = handle_operation(Operation.GENERATE_SCHEMA, document)

    applied = handle_operation(Operation.APPLY_TRANSLATION, document, rename_schema(generated.result))

    assert Operation.GENERATE_SCHEMA == "generateSchema"
    assert generated.result == generate_schema(document)
    assert applied.key_map is not None
    assert applied.key_map["user"] == "用户"


def test_handle_operation_rejects_unknown_operation() -> None:
    with pytest.raises(InvalidOperationError, match="Invalid operation: translate"):
        handle_operation("translate", {"a": 1})


def test_handle_operation_requires_translated_schema() -> None:
    with pytest.raises(InvalidOperationError):
        handle_operation("applyTranslation", {"a": 1})


@pytest.mark.asyncio
async def test_translator_reuses_cache_across_runs() -> None:
    engine = create_engine("custom", Config(), translator_fn=glossary_fn)

    async with JsonKeyTranslator(TranslationOptions(engine=engine)) as translator:
        first = await translator.translate_json_keys({"user": {"name": "John"}})
        second = await translator.translate_json_keys({"user": {"name": "Jane"}})
        statistics = translator.cache_statistics()

        assert first.key_map == second.key_map
        assert second.translated_json == {"用户": {"姓名": "Jane"}}
        assert statistics is not None
        assert (statistics.hits, statistics.misses, statistics.size) == (2, 2, 2)

        translator.clear_cache()
        cleared = translator.cache_statistics()
        assert cleared is not None
        assert cleared.size == 0


@pytest.mark.asyncio
async def test_translator_without_cache() -> None:
    engine = create_engine("custom", Config(), translator_fn=glossary_fn)

    async with JsonKeyTranslator(TranslationOptions(engine=engine, use_cache=False)) as translator:
        result = await translator.translate_keys(generate_schema({"id": 1}))

        assert result.key_map == {"id": "编号"}
        assert translator.cache_statistics() is None
        assert translator.apply_translated_keys({"id": 1}, result.key_map) == {"编号": 1}


@pytest.mark.asyncio
async def test_translator_with_schema_function_has_no_manager() -> None:
    options = TranslationOptions(translation_fn=lambda schema, opts: rename_schema(schema))

    async with JsonKeyTranslator(options) as translator:
        result = await translator.translate_json_keys({"name": "John"})

        assert result.translated_json == {"姓名": "John"}
        assert translator.cache_statistics() is None


@pytest.mark.asyncio
async def test_translator_from_config_creates_engine() -> None:
    config = Config()
    config.TRANSLATION.ENGINE = "custom"
    config.TRANSLATION.TARGET_LANGUAGE = "zh"

    translator = JsonKeyTranslator.from_config(config, engine_kwargs={"translator_fn": glossary_fn})
    try:
        result = await translator.translate_json_keys({"tags": []})
    finally:
        await translator.close()

    assert result.translated_json == {"标签": []}
    assert translator.options.engine is not None
    assert translator.options.engine.engine_name == "custom"


def test_translator_from_config_rejects_unknown_engine() -> None:
    config = Config()
    config.TRANSLATION.ENGINE = "babelfish"

    with pytest.raises(InvalidOperationError, match="babelfish"):
        JsonKeyTranslator.from_config(config)
