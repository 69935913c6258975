from __future__ import annotations

import pytest

from json_key_translator.core.trans.engines.custom import CustomTranslation
from json_key_translator.core.trans.interface import BackendError, InvalidOperationError, create_engine
from json_key_translator.models.config_models import Config

GLOSSARY: dict[str, str] = {"user": "用户", "name": "姓名"}


def translate_sync(text: str, src_lang: str | None, tgt_lang: str) -> str:
    _ = src_lang, tgt_lang
    return GLOSSARY[text]


async def translate_async(text: str, src_lang: str | None, tgt_lang: str) -> str:
    return f"{text}-{src_lang}-{tgt_lang}"


def test_initialize_requires_a_function() -> None:
    with pytest.raises(InvalidOperationError):
        CustomTranslation().initialize(Config())


def test_batch_support_follows_supplied_functions() -> None:
    single = create_engine("custom", Config(), translator_fn=translate_sync)
    batch = create_engine("custom", Config(), batch_translator_fn=lambda texts, src, tgt: texts)

    assert single.engine_name == "custom"
    assert single.has_batch_api is False
    assert batch.has_batch_api is True


@pytest.mark.asyncio
async def test_sync_translator_function() -> None:
    engine = create_engine("custom", Config(), translator_fn=translate_sync)

    result = await engine.translation("user", tgt_lang="zh", src_lang="en")

    assert result.text == "用户"
    assert result.metadata == {"engine": "custom"}


@pytest.mark.asyncio
async def test_async_translator_function_receives_languages() -> None:
    engine = create_engine("custom", Config(), translator_fn=translate_async)

    result = await engine.translation("id", tgt_lang="ja", src_lang="en")

    assert result.text == "id-en-ja"


@pytest.mark.asyncio
async def test_batch_falls_back_to_single_function() -> None:
    engine = create_engine("custom", Config(), translator_fn=translate_sync)

    results = await engine.batch_translation(["user", "name"], tgt_lang="zh", src_lang="en")

    assert [result.text for result in results] == ["用户", "姓名"]


@pytest.mark.asyncio
async def test_single_falls_back_to_batch_function() -> None:
    calls: list[list[str]] = []

    async def batch(texts: list[str], src_lang: str | None, tgt_lang: str) -> list[str]:
        calls.append(texts)
        return [text.upper() for text in texts]

    engine = create_engine("custom", Config(), batch_translator_fn=batch)

    result = await engine.translation("name", tgt_lang="zh")

    assert result.text == "NAME"
    assert calls == [["name"]]


@pytest.mark.asyncio
async def test_function_errors_are_wrapped() -> None:
    engine = create_engine("custom", Config(), translator_fn=translate_sync)

    with pytest.raises(BackendError) as excinfo:
        await engine.translation("unknown", tgt_lang="zh")

    assert isinstance(excinfo.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_non_string_result_is_rejected() -> None:
    engine = create_engine("custom", Config(), translator_fn=lambda text, src, tgt: 42)

    with pytest.raises(BackendError, match="expected str"):
        await engine.translation("name", tgt_lang="zh")


@pytest.mark.asyncio
async def test_batch_length_mismatch_is_rejected() -> None:
    engine = create_engine("custom", Config(), batch_translator_fn=lambda texts, src, tgt: texts[:1])

    with pytest.raises(BackendError, match="one text per input"):
        await engine.batch_translation(["a", "b"], tgt_lang="zh")
