from __future__ import annotations

from typing import cast

import pytest
from deepl.exceptions import AuthorizationException, QuotaExceededException, TooManyRequestsException

from json_key_translator.core.trans.engines import deepl as deepl_module
from json_key_translator.core.trans.interface import (
    BackendError,
    NotSupportedLanguagesError,
    Result,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from json_key_translator.models.config_models import Config


class DummyLanguage:
    ENGLISH: str = "en"
    AMERICAN_ENGLISH: str = "en-US"
    JAPANESE: str = "ja"
    GERMAN: str = "de"


class DummyTextResult:
    def __init__(self, text: str, detected_source_lang: str) -> None:
        self.text: str = text
        self.detected_source_lang: str = detected_source_lang


class DummyClient:
    translate_error: Exception | None = None
    return_single: bool = False

    def __init__(self, auth_key: str) -> None:
        if not auth_key:
            msg = "auth_key must not be empty"
            raise ValueError(msg)
        self.auth_key: str = auth_key
        self.calls: list[tuple[list[str], str | None, str]] = []

    def translate_text(
        self, text: list[str], source_lang: str | None, target_lang: str
    ) -> DummyTextResult | list[DummyTextResult]:
        self.calls.append((text, source_lang, target_lang))
        err: Exception | None = type(self).translate_error
        if err is not None:
            raise err
        results = [DummyTextResult(f"{item}-{target_lang}", "EN") for item in text]
        if type(self).return_single:
            return results[0]
        return results


@pytest.fixture(autouse=True)
def setup_deepl_module(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_to_thread(func, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(deepl_module, "Language", DummyLanguage)
    monkeypatch.setattr(deepl_module, "TextResult", DummyTextResult)
    monkeypatch.setattr(deepl_module, "DeepLClient", DummyClient)
    monkeypatch.setattr(deepl_module.asyncio, "to_thread", fake_to_thread)
    monkeypatch.setenv("DEEPL_API_KEY", "token")

    monkeypatch.setattr(deepl_module.DeeplTranslation, "_source_codes", {})
    monkeypatch.setattr(deepl_module.DeeplTranslation, "_target_codes", {})
    DummyClient.translate_error = None
    DummyClient.return_single = False


@pytest.fixture
def engine() -> deepl_module.DeeplTranslation:
    instance = deepl_module.DeeplTranslation()
    instance.initialize(Config())
    return instance


def test_inst_property_raises_when_uninitialized() -> None:
    with pytest.raises(BackendError):
        _ = deepl_module.DeeplTranslation()._inst


def test_initialize_sets_attributes_and_instance(engine: deepl_module.DeeplTranslation) -> None:
    assert engine.engine_attributes.name == "deepl"
    assert engine.has_batch_api is True
    assert cast("DummyClient", engine._inst).auth_key == "token"


def test_initialize_without_key_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DEEPL_API_KEY")

    with pytest.raises(BackendError, match="creating the DeepL client"):
        deepl_module.DeeplTranslation().initialize(Config())


def test_language_code_mapping(engine: deepl_module.DeeplTranslation) -> None:
    _ = engine
    assert deepl_module.DeeplTranslation._target_codes["en"] == "EN-US"
    assert deepl_module.DeeplTranslation._source_codes["en"] == "EN"
    assert deepl_module.DeeplTranslation._target_codes["zh"] == "ZH"


@pytest.mark.asyncio
async def test_batch_translation_sends_one_request(engine: deepl_module.DeeplTranslation) -> None:
    results: list[Result] = await engine.batch_translation(["name", "age"], tgt_lang="ja", src_lang="en")

    assert [result.text for result in results] == ["name-JA", "age-JA"]
    assert results[0].detected_source_lang == "en"
    assert results[0].metadata == {"engine": "deepl"}
    assert cast("DummyClient", engine._inst).calls == [(["name", "age"], "EN", "JA")]


@pytest.mark.asyncio
async def test_translation_accepts_single_result(engine: deepl_module.DeeplTranslation) -> None:
    DummyClient.return_single = True

    result: Result = await engine.translation("name", tgt_lang="de")

    assert result.text == "name-DE"


@pytest.mark.asyncio
async def test_empty_batch_makes_no_request(engine: deepl_module.DeeplTranslation) -> None:
    assert await engine.batch_translation([], tgt_lang="ja") == []
    assert cast("DummyClient", engine._inst).calls == []


@pytest.mark.asyncio
async def test_unsupported_language_raises(engine: deepl_module.DeeplTranslation) -> None:
    with pytest.raises(NotSupportedLanguagesError):
        await engine.translation("name", tgt_lang="xx", src_lang="en")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (QuotaExceededException("quota"), TranslationQuotaExceededError),
        (TooManyRequestsException("slow"), TranslationRateLimitError),
        (AuthorizationException("auth"), BackendError),
        (ValueError("bad"), BackendError),
    ],
)
async def test_sdk_errors_are_mapped(
    engine: deepl_module.DeeplTranslation, error: Exception, expected: type[Exception]
) -> None:
    DummyClient.translate_error = error

    with pytest.raises(expected):
        await engine.translation("name", tgt_lang="ja")


@pytest.mark.asyncio
async def test_close_drops_client(engine: deepl_module.DeeplTranslation) -> None:
    await engine.close()

    with pytest.raises(BackendError):
        _ = engine._inst
