"""DeepSeek chat-completions engine.

Keys are sent as a JSON array inside a prompt; the model answers with ``{"translations": [...]}`` in the
same order. The endpoint speaks the OpenAI-compatible chat-completions protocol, so any compatible
service can be configured in the DEEPSEEK section.
"""

from __future__ import annotations

import json
import re
import textwrap
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Final

from json_key_translator.core.trans.interface import (
    BackendError,
    EngineAttributes,
    Result,
    TransInterface,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from json_key_translator.handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.config_models import Config

__all__: list[str] = ["DeepSeekTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SYSTEM_PROMPT: Final[str] = (
    "You are a professional translator specializing in technical terminology and variable names."
)

_FENCE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_prompt(keys: list[str], source_language: str | None, target_language: str) -> str:
    """Build the user prompt asking for the keys' translations in input order."""
    source: str = source_language or "the detected source language"
    return textwrap.dedent(
        f"""\
        Translate the following {source} JSON keys into {target_language}.
        These are variable names or object property names from a JSON structure, so translate them appropriately for a programming context.
        Return only a JSON object with a "translations" array containing the translated keys in the same order.

        Keys to translate:
        {json.dumps(keys, ensure_ascii=False)}

        Please follow these guidelines:
        1. Keep the translations concise and appropriate for variable/property names
        2. Do not use spaces in the translations
        3. Use camelCase for multi-word translations
        4. Preserve technical terms when appropriate
        5. If a key should not be translated (like "id", "API", etc.), keep it as is

        Your response should be a valid JSON object like this:
        {{"translations": ["translatedKey1", "translatedKey2"]}}
        """
    )


def parse_translations(content: str) -> list[str]:
    """Extract the ``translations`` array from the model's answer.

    Markdown code fences around the JSON are tolerated.

    Raises:
        BackendError: If the answer is not a JSON object with a list of strings under ``translations``.
    """
    text: str = content.strip()
    if fenced := _FENCE_PATTERN.match(text):
        text = fenced.group(1)

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as err:
        msg = "DeepSeek returned a non-JSON answer"
        raise BackendError(msg) from err

    translations: Any = data.get("translations") if isinstance(data, dict) else None
    if not isinstance(translations, list) or not all(isinstance(item, str) for item in translations):
        msg = "DeepSeek answer does not contain a 'translations' array of strings"
        raise BackendError(msg)
    return translations


class DeepSeekTranslation(TransInterface):
    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self._endpoint: str = ""
        self._model: str = ""
        self._temperature: float = 0.2
        self._timeout: float = 60.0

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The DeepSeek HTTP client is not initialised"
            raise BackendError(msg)
        return self.__http

    @staticmethod
    def fetch_engine_name() -> str:
        return "deepseek"

    def initialize(self, config: Config) -> None:
        """Read the DEEPSEEK section and the key from ``DEEPSEEK_API_KEY``.

        Raises:
            BackendError: If ``DEEPSEEK_API_KEY`` is not set.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(name="deepseek", supports_batch_api=True)

        api_key: str = self.get_authentication_key()
        if not api_key:
            msg = "DEEPSEEK_API_KEY is not set"
            raise BackendError(msg)

        self._endpoint = config.DEEPSEEK.ENDPOINT
        self._model = config.DEEPSEEK.MODEL
        self._temperature = config.DEEPSEEK.TEMPERATURE
        self._timeout = config.DEEPSEEK.TIMEOUT
        self.__http = AsyncHttp(headers={"Authorization": f"Bearer {api_key}"})

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        results: list[Result] = await self.batch_translation([content], tgt_lang=tgt_lang, src_lang=src_lang)
        return results[0]

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        """Translate several keys with one chat completion.

        Raises:
            TranslationQuotaExceededError: If the account balance is insufficient (HTTP 402).
            TranslationRateLimitError: If the request is rate-limited (HTTP 429).
            BackendError: For any other failure, or when the answer's length differs from the input's.
        """
        if not contents:
            return []

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(list(contents), src_lang, tgt_lang)},
            ],
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response: Any = await self._http.post(url=self._endpoint, data=payload, total_timeout=self._timeout)
        except AsyncCommTimeoutError as err:
            msg = "The DeepSeek request timed out"
            raise BackendError(msg) from err
        except AsyncCommError as err:
            if err.status == HTTPStatus.PAYMENT_REQUIRED:
                msg = "DeepSeek account balance is insufficient"
                raise TranslationQuotaExceededError(msg) from err
            if err.status == HTTPStatus.TOO_MANY_REQUESTS:
                msg = "DeepSeek rate limit reached"
                raise TranslationRateLimitError(msg) from err
            msg = f"DeepSeek API error: {err.msg}"
            raise BackendError(msg) from err

        try:
            content: str = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            msg = "Unexpected response format from DeepSeek"
            raise BackendError(msg) from None

        translations: list[str] = parse_translations(content)
        if len(translations) != len(contents):
            msg = f"DeepSeek returned {len(translations)} translations for {len(contents)} keys"
            raise BackendError(msg)

        logger.info("translation completed (%s > %s): %d keys", src_lang, tgt_lang, len(contents))
        return [
            Result(text=text, detected_source_lang=src_lang, metadata={"engine": "deepseek", "model": self._model})
            for text in translations
        ]

    async def close(self) -> None:
        if self.__http is not None:
            await self.__http.close()
            self.__http = None
        logger.debug("'%s' process termination", self.__class__.__name__)
