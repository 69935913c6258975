"""DeepL engine backed by the official ``deepl`` SDK.

The SDK is synchronous, so every call runs in a worker thread. One ``translate_text`` request
carries a whole batch of keys.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar, Final

from deepl import DeepLClient, Language, TextResult
from deepl.exceptions import (
    AuthorizationException,
    ConnectionException,
    DeepLException,
    QuotaExceededException,
    TooManyRequestsException,
)

from json_key_translator.core.trans.interface import (
    BackendError,
    EngineAttributes,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.config_models import Config


__all__: list[str] = ["DeeplTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ENGINE_NAME: Final[str] = "deepl"
CHINESE_CODES: Final[tuple[str, ...]] = ("zh", "zh-CN", "zh-TW")
GENERIC_FAILURE: Final[str] = "An anomaly occurred during the translation process at DeepL"


def _sdk_language_codes() -> list[str]:
    """Language codes declared as upper-case constants on ``deepl.Language``."""
    return [value for name, value in vars(Language).items() if name.isupper() and isinstance(value, str)]


def _as_backend_error(err: Exception) -> BackendError:
    match err:
        case QuotaExceededException():
            return TranslationQuotaExceededError(err)
        case TooManyRequestsException():
            return TranslationRateLimitError("DeepL rate limit reached")
        case AuthorizationException():
            return BackendError("Authorisation failed. Please check your authentication key")
        case ConnectionException():
            return BackendError("An error occurred when connecting to the DeepL server")
        case _:
            return BackendError(GENERIC_FAILURE)


def _to_result(text_result: TextResult) -> Result:
    detected: str = (text_result.detected_source_lang or "").lower()
    return Result(text=text_result.text, detected_source_lang=detected or None, metadata={"engine": ENGINE_NAME})


class DeeplTranslation(TransInterface):
    """Engine for the DeepL API; the key is read from ``DEEPL_API_KEY``.

    Attributes:
        _source_codes (dict[str, str]): Caller language code to DeepL source code, e.g. 'en' -> 'EN'.
        _target_codes (dict[str, str]): Caller language code to DeepL target code, e.g. 'en' -> 'EN-US'.
    """

    _source_codes: ClassVar[dict[str, str]] = {}
    _target_codes: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        super().__init__()
        self.__client: DeepLClient | None = None
        self._register_language_codes()

    @classmethod
    def _register_language_codes(cls) -> None:
        # the last regional variant listed wins as the target for its base code
        for code in _sdk_language_codes():
            base: str = code.partition("-")[0].lower()
            cls._source_codes[base] = base.upper()
            cls._target_codes[base] = code.upper()
        for chinese in CHINESE_CODES:
            cls._source_codes[chinese] = cls._target_codes[chinese] = "ZH"
        logger.debug("DeepL language codes registered: %d targets", len(cls._target_codes))

    @property
    def _inst(self) -> DeepLClient:
        if self.__client is None:
            msg = "The DeepL client is not initialised"
            raise BackendError(msg)
        return self.__client

    @staticmethod
    def fetch_engine_name() -> str:
        return ENGINE_NAME

    def initialize(self, config: Config) -> None:
        """Create the SDK client. The key is only checked by DeepL on the first request.

        Raises:
            BackendError: If the client cannot be created, e.g. because the key is missing.
        """
        _ = config
        self.engine_attributes = EngineAttributes(name=ENGINE_NAME, supports_batch_api=True)
        try:
            self.__client = DeepLClient(self.get_authentication_key())
        except (AttributeError, ValueError) as err:
            logger.critical("DeepL client creation failed: %s", err)
            msg = "An error occurred while creating the DeepL client instance"
            raise BackendError(msg) from err
        logger.debug("'%s' initialized", self.__class__.__name__)

    def _deepl_codes(self, tgt_lang: str, src_lang: str | None) -> tuple[str, str | None]:
        target: str | None = self._target_codes.get(tgt_lang)
        source: str | None = self._source_codes.get(src_lang) if src_lang else None
        if target is None or (src_lang and source is None):
            msg: str = (
                f"Languages not supported by DeepL. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
            )
            raise NotSupportedLanguagesError(msg)
        return target, source

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        (result,) = await self.batch_translation([content], tgt_lang=tgt_lang, src_lang=src_lang)
        return result

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        """Translate ``contents`` in one request.

        Raises:
            NotSupportedLanguagesError: If DeepL does not support the language pair.
            TranslationQuotaExceededError: If the account quota is used up.
            TranslationRateLimitError: If DeepL rejects the request as too frequent.
            BackendError: For any other SDK or connection failure.
        """
        if not contents:
            return []
        target, source = self._deepl_codes(tgt_lang, src_lang)
        logger.debug("DeepL request (%s > %s): %s", source, target, contents)

        try:
            response: TextResult | list[TextResult] = await asyncio.to_thread(
                self._inst.translate_text, list(contents), source_lang=source, target_lang=target
            )
        except (DeepLException, ValueError, TypeError) as err:
            logger.debug("DeepL request failed: %r", err)
            raise _as_backend_error(err) from err

        logger.info("translation completed (%s > %s): %d texts", source, target, len(contents))
        return self._build_results(response)

    def _build_results(self, response: TextResult | list[TextResult]) -> list[Result]:
        """Normalize the SDK return value, a single ``TextResult`` or a list of them.

        Raises:
            BackendError: If the response has neither shape.
        """
        if isinstance(response, TextResult):
            return [_to_result(response)]
        if not isinstance(response, list):
            raise BackendError(GENERIC_FAILURE)
        return [_to_result(item) for item in response]

    async def close(self) -> None:
        self.__client = None
        logger.debug("'%s' closed", self.__class__.__name__)
