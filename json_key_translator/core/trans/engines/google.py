from __future__ import annotations

import html
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, NoReturn

from json_key_translator.core.trans.interface import (
    BackendError,
    EngineAttributes,
    NotSupportedLanguagesError,
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

__all__: list[str] = ["GoogleTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class GoogleTranslation(TransInterface):
    """Google Cloud Translation (Basic, v2) over its REST API.

    The API key is read from ``GOOGLE_API_KEY``. Several texts are sent in one request by repeating
    the ``q`` field, so the engine has a native batch API.
    """

    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self._endpoint: str = ""
        self._timeout: float = 10.0
        self._api_key: str = ""

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The Google HTTP client is not initialised"
            raise BackendError(msg)
        return self.__http

    @staticmethod
    def fetch_engine_name() -> str:
        return "google"

    def initialize(self, config: Config) -> None:
        """Read the endpoint and timeout from the GOOGLE section and the API key from the environment.

        Raises:
            BackendError: If ``GOOGLE_API_KEY`` is not set.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(name="google", supports_batch_api=True)

        self._api_key = self.get_authentication_key()
        if not self._api_key:
            msg = "GOOGLE_API_KEY is not set"
            raise BackendError(msg)
        self._endpoint = config.GOOGLE.ENDPOINT
        self._timeout = config.GOOGLE.TIMEOUT
        self.__http = AsyncHttp()

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        results: list[Result] = await self.batch_translation([content], tgt_lang=tgt_lang, src_lang=src_lang)
        return results[0]

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        """Translate several texts in one request.

        Raises:
            NotSupportedLanguagesError: If the API rejects the request (HTTP 400).
            TranslationQuotaExceededError: If the daily quota is exhausted (HTTP 403).
            TranslationRateLimitError: If the request is rate-limited (HTTP 429).
            BackendError: For any other transport failure or a malformed response.
        """
        if not contents:
            return []
        logger.debug("'contents': %s, 'src_lang': '%s', 'tgt_lang': '%s'", contents, src_lang, tgt_lang)

        payload: dict[str, Any] = {"q": list(contents), "target": tgt_lang, "format": "text"}
        if src_lang:
            payload["source"] = src_lang

        try:
            response: Any = await self._http.post(
                url=self._endpoint,
                params={"key": self._api_key},
                data=payload,
                total_timeout=self._timeout,
            )
        except AsyncCommTimeoutError as err:
            msg = "The Google translation request timed out"
            raise BackendError(msg) from err
        except AsyncCommError as err:
            self._raise_for_status(err, src_lang, tgt_lang)

        translations: list[dict[str, Any]] = self._parse_response(response)
        if len(translations) != len(contents):
            msg: str = f"Google returned {len(translations)} translations for {len(contents)} texts"
            raise BackendError(msg)

        logger.info("translation completed (%s > %s): %d texts", src_lang, tgt_lang, len(contents))
        return [
            Result(
                text=html.unescape(item.get("translatedText", "")),
                detected_source_lang=item.get("detectedSourceLanguage", src_lang),
                metadata={"engine": "google"},
            )
            for item in translations
        ]

    def _parse_response(self, response: Any) -> list[dict[str, Any]]:
        try:
            translations: Any = response["data"]["translations"]
        except (KeyError, TypeError):
            msg = "Unexpected response format from Google"
            raise BackendError(msg) from None
        if not isinstance(translations, list) or not all(isinstance(item, dict) for item in translations):
            msg = "Unexpected response format from Google"
            raise BackendError(msg)
        return translations

    def _raise_for_status(self, err: AsyncCommError, src_lang: str | None, tgt_lang: str) -> NoReturn:
        match err.status:
            case HTTPStatus.BAD_REQUEST:
                msg: str = f"Languages not supported by Google. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
                raise NotSupportedLanguagesError(msg) from err
            case HTTPStatus.FORBIDDEN:
                msg = "Google translation quota exceeded or the API key was rejected"
                raise TranslationQuotaExceededError(msg) from err
            case HTTPStatus.TOO_MANY_REQUESTS:
                msg = "Google rate limit reached"
                raise TranslationRateLimitError(msg) from err
            case _:
                msg = "An error occurred when connecting to the Google server"
                raise BackendError(msg) from err

    async def close(self) -> None:
        if self.__http is not None:
            await self.__http.close()
            self.__http = None
        logger.debug("'%s' process termination", self.__class__.__name__)
