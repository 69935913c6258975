"""Engine wrapping a caller-supplied translation function."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeAlias

from json_key_translator.core.trans.interface import (
    BackendError,
    EngineAttributes,
    InvalidOperationError,
    Result,
    TransInterface,
)
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.config_models import Config

__all__: list[str] = ["BatchTranslatorFn", "CustomTranslation", "TranslatorFn"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# (text, source language, target language) -> translated text
TranslatorFn: TypeAlias = "Callable[[str, str | None, str], str | Awaitable[str]]"
# (texts, source language, target language) -> translated texts, same order and length
BatchTranslatorFn: TypeAlias = "Callable[[list[str], str | None, str], list[str] | Awaitable[list[str]]]"


class CustomTranslation(TransInterface):
    """Adapts plain callables to the engine interface.

    Both callables may be synchronous or coroutine functions. Anything they raise is reported as
    `BackendError`, with the original exception chained.
    """

    def __init__(
        self,
        translator_fn: TranslatorFn | None = None,
        batch_translator_fn: BatchTranslatorFn | None = None,
    ) -> None:
        super().__init__()
        self._translator_fn: TranslatorFn | None = translator_fn
        self._batch_translator_fn: BatchTranslatorFn | None = batch_translator_fn

    @staticmethod
    def fetch_engine_name() -> str:
        return "custom"

    def initialize(self, config: Config) -> None:
        """Check that a function was supplied.

        Raises:
            InvalidOperationError: If neither ``translator_fn`` nor ``batch_translator_fn`` is set.
        """
        _ = config
        if self._translator_fn is None and self._batch_translator_fn is None:
            msg = "The custom engine requires 'translator_fn' or 'batch_translator_fn'"
            raise InvalidOperationError(msg)
        self.engine_attributes = EngineAttributes(
            name="custom",
            supports_batch_api=self._batch_translator_fn is not None,
        )

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        if self._translator_fn is None:
            results: list[Result] = await self.batch_translation([content], tgt_lang=tgt_lang, src_lang=src_lang)
            return results[0]

        try:
            text = self._translator_fn(content, src_lang, tgt_lang)
            if inspect.isawaitable(text):
                text = await text
        except Exception as err:
            msg: str = f"Custom translator failed for '{content}'"
            raise BackendError(msg) from err

        if not isinstance(text, str):
            msg = f"Custom translator returned {type(text).__name__}, expected str"
            raise BackendError(msg)
        return Result(text=text, detected_source_lang=src_lang, metadata={"engine": "custom"})

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        if self._batch_translator_fn is None:
            return await super().batch_translation(contents, tgt_lang=tgt_lang, src_lang=src_lang)

        try:
            texts = self._batch_translator_fn(list(contents), src_lang, tgt_lang)
            if inspect.isawaitable(texts):
                texts = await texts
        except Exception as err:
            msg: str = f"Custom batch translator failed for {len(contents)} texts"
            raise BackendError(msg) from err

        if not isinstance(texts, list) or len(texts) != len(contents):
            msg = "Custom batch translator must return a list with one text per input"
            raise BackendError(msg)
        return [Result(text=str(text), detected_source_lang=src_lang, metadata={"engine": "custom"}) for text in texts]

    async def close(self) -> None:
        logger.debug("'%s' process termination", self.__class__.__name__)
