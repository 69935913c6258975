from __future__ import annotations

from typing import TYPE_CHECKING

from json_key_translator.core.trans.interface import EngineAttributes, Result, TransInterface
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.config_models import Config

__all__: list[str] = ["IdentityTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class IdentityTranslation(TransInterface):
    """Engine that returns every text unchanged.

    Used when no backend is configured, and in tests.
    """

    @staticmethod
    def fetch_engine_name() -> str:
        return "identity"

    def initialize(self, config: Config) -> None:
        _ = config
        self.engine_attributes = EngineAttributes(name="identity", supports_batch_api=True)

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        _ = tgt_lang
        return Result(text=content, detected_source_lang=src_lang, metadata={"engine": "identity"})

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        return [await self.translation(content, tgt_lang=tgt_lang, src_lang=src_lang) for content in contents]

    async def close(self) -> None:
        logger.debug("'%s' process termination", self.__class__.__name__)
