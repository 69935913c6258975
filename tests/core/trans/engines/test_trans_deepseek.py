from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from json_key_translator.core.trans.engines.deepseek import DeepSeekTranslation, build_prompt, parse_translations
from json_key_translator.core.trans.interface import (
    BackendError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from json_key_translator.handlers.async_comm import AsyncCommError
from json_key_translator.models.config_models import Config


def chat_response(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> DeepSeekTranslation:
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    instance = DeepSeekTranslation()
    instance.initialize(Config())
    return instance


def test_build_prompt_lists_keys_in_order() -> None:
    prompt = build_prompt(["firstName", "名前"], "en", "zh")

    assert "Translate the following en JSON keys into zh." in prompt
    assert '["firstName", "名前"]' in prompt
    assert '{"translations": ["translatedKey1", "translatedKey2"]}' in prompt
    assert not prompt.startswith(" ")


@pytest.mark.parametrize(
    "content",
    [
        '{"translations": ["a", "b"]}',
        '```json\n{"translations": ["a", "b"]}\n```',
        '```\n{"translations": ["a", "b"]}\n```',
    ],
)
def test_parse_translations_tolerates_fences(content: str) -> None:
    assert parse_translations(content) == ["a", "b"]


@pytest.mark.parametrize("content", ["not json", '["a"]', '{"translations": "a"}', '{"translations": [1]}'])
def test_parse_translations_rejects_malformed(content: str) -> None:
    with pytest.raises(BackendError):
        parse_translations(content)


def test_initialize_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)

    with pytest.raises(BackendError, match="DEEPSEEK_API_KEY"):
        DeepSeekTranslation().initialize(Config())


@pytest.mark.asyncio
async def test_batch_translation(engine: DeepSeekTranslation, monkeypatch: pytest.MonkeyPatch) -> None:
    post = AsyncMock(return_value=chat_response(json.dumps({"translations": ["用户", "姓名"]})))
    monkeypatch.setattr(engine._http, "post", post)

    results = await engine.batch_translation(["user", "name"], tgt_lang="zh", src_lang="en")

    assert [result.text for result in results] == ["用户", "姓名"]
    assert results[0].metadata == {"engine": "deepseek", "model": "deepseek-chat"}
    payload = post.await_args.kwargs["data"]
    assert payload["model"] == "deepseek-chat"
    assert payload["temperature"] == pytest.approx(0.2)
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["messages"][0]["role"] == "system"
    assert '["user", "name"]' in payload["messages"][1]["content"]
    assert post.await_args.kwargs["url"] == Config().DEEPSEEK.ENDPOINT


@pytest.mark.asyncio
async def test_authorization_header_is_sent(engine: DeepSeekTranslation) -> None:
    assert engine._http._headers == {"Authorization": "Bearer sk-test"}


@pytest.mark.asyncio
async def test_length_mismatch_raises(engine: DeepSeekTranslation, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(engine._http, "post", AsyncMock(return_value=chat_response('{"translations": ["only"]}')))

    with pytest.raises(BackendError, match="1 translations for 2 keys"):
        await engine.batch_translation(["a", "b"], tgt_lang="zh")


@pytest.mark.asyncio
async def test_unexpected_response_raises(engine: DeepSeekTranslation, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(engine._http, "post", AsyncMock(return_value={"error": "nope"}))

    with pytest.raises(BackendError, match="Unexpected response format"):
        await engine.translation("a", tgt_lang="zh")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [(402, TranslationQuotaExceededError), (429, TranslationRateLimitError), (401, BackendError)],
)
async def test_status_errors_are_mapped(
    engine: DeepSeekTranslation, monkeypatch: pytest.MonkeyPatch, status: int, expected: type[Exception]
) -> None:
    response_error = aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=status)
    error = AsyncCommError("Error response from the server.", response=response_error)
    monkeypatch.setattr(engine._http, "post", AsyncMock(side_effect=error))

    with pytest.raises(expected):
        await engine.translation("a", tgt_lang="zh")
