"""Backend contract for key translation.

Every engine subclasses `TransInterface` and is registered under its name when the class is defined;
`create_engine` looks it up. Engines report failures as `BackendError` or one of its subclasses.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.config_models import Config

__all__: list[str] = [
    "BackendError",
    "EngineAttributes",
    "InvalidOperationError",
    "NotSupportedLanguagesError",
    "Result",
    "TransInterface",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
    "create_engine",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class EngineAttributes:
    """What an engine can do beyond single-text translation.

    Attributes:
        name (str): Name of the translation engine, for logging only.
        supports_batch_api (bool): Whether the engine translates a list of texts in one request.
    """

    name: str
    supports_batch_api: bool = False


@dataclass
class Result:
    """One translated key as returned by an engine.

    Attributes:
        text (str | None): Translated key, or None when the engine returned nothing.
        detected_source_lang (str | None): Source language reported by the backend, if any.
        metadata (dict[str, str] | None): Free-form details such as the engine name.
    """

    text: str | None = None
    detected_source_lang: str | None = None
    metadata: dict[str, str] | None = None

    def __str__(self) -> str:
        if self.text is None:
            return ""
        return self.text


class BackendError(Exception):
    """The engine could not produce a translation."""


class NotSupportedLanguagesError(BackendError):
    """The engine cannot translate between the requested languages."""


class TranslationQuotaExceededError(BackendError):
    """The account behind the engine has no quota left."""


class TranslationRateLimitError(BackendError):
    """The engine asked the caller to slow down."""


class InvalidOperationError(Exception):
    """An unsupported operation was requested or a required option is missing."""


class TransInterface(ABC):
    """Base class of the translation engines.

    The core only needs one capability from a backend: text in, translated text out, for a
    source/target language pair, one text at a time or as a batch. Provider APIs, user callbacks and
    the no-op identity engine all implement this class.

    Attributes:
        registered (ClassVar[dict[str, type[TransInterface]]]): Registered engine classes keyed by
            their distinguished names.
    """

    registered: ClassVar[dict[str, type[TransInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Add the subclass to `registered` under its engine name.

        Engines whose ``fetch_engine_name()`` is empty are allowed but not registered.
        """
        super().__init_subclass__(**kwargs)
        name: Any = cls.fetch_engine_name()
        if not isinstance(name, str) or name == "":
            return

        if name in cls.registered:
            msg: str = f"A translation engine with the name '{name}' is already registered."
            raise ValueError(msg)

        cls.registered[name] = cls

    def __init__(self) -> None:
        self._engine_attributes: EngineAttributes | None = None

    @property
    def engine_attributes(self) -> EngineAttributes:
        if self._engine_attributes is None:
            msg = "Engine attributes have not been set."
            raise RuntimeError(msg)
        return self._engine_attributes

    @engine_attributes.setter
    def engine_attributes(self, attributes: EngineAttributes) -> None:
        if self._engine_attributes is not None:
            msg = "Engine attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._engine_attributes = attributes

    @property
    def engine_name(self) -> str:
        return self.engine_attributes.name

    @property
    def has_batch_api(self) -> bool:
        return self.engine_attributes.supports_batch_api

    def is_rate_limit_error(self, err: Exception) -> bool:
        return isinstance(err, TranslationRateLimitError)

    @staticmethod
    @abstractmethod
    def fetch_engine_name() -> str:
        """Registry name of the engine; empty to stay unregistered.

        Evaluated in ``__init_subclass__``, before any instance exists.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(self, config: Config) -> None:
        """Prepare clients and attributes; called once by `create_engine`.

        Args:
            config (Config): Loaded configuration, for engines with their own section.

        Raises:
            BackendError: If the engine cannot be set up (e.g. missing credentials).
        """
        raise NotImplementedError

    @abstractmethod
    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        """Translate one key.

        Args:
            content (str): Key to translate, e.g. ``"firstName"``.
            tgt_lang (str): Target language code.
            src_lang (str | None): Source language code. If None, the backend detects it.

        Returns:
            Result: Translation result.

        Raises:
            NotSupportedLanguagesError: If the language pair is not available.
            TranslationQuotaExceededError: If the quota is used up.
            TranslationRateLimitError: If the engine throttles the request.
            BackendError: For any other failure.
        """
        raise NotImplementedError

    async def batch_translation(self, contents: list[str], tgt_lang: str, src_lang: str | None = None) -> list[Result]:
        """Translate several texts, preserving order and length.

        The default implementation calls :meth:`translation` once per text, sequentially. Engines with a
        native batch API override it.

        Raises:
            BackendError: If any translation fails.
        """
        results: list[Result] = []
        for content in contents:
            results.append(await self.translation(content, tgt_lang=tgt_lang, src_lang=src_lang))
        return results

    @abstractmethod
    async def close(self) -> None:
        """Release network sessions or clients held by the engine."""
        raise NotImplementedError

    def get_authentication_key(self) -> str:
        """Value of ``<ENGINE>_API_KEY`` (e.g. ``DEEPL_API_KEY``), or an empty string when unset."""
        return os.getenv(f"{self.fetch_engine_name().upper()}_API_KEY", "")


def create_engine(name: str, config: Config, **kwargs: Any) -> TransInterface:
    """Instantiate and initialize a registered engine.

    Args:
        name (str): Distinguished engine name (``identity``, ``custom``, ``google``, ``deepl``, ``deepseek``).
        config (Config): Loaded configuration.
        **kwargs: Passed to the engine constructor (e.g. ``translator_fn`` for ``custom``).

    Returns:
        TransInterface: The initialized engine.

    Raises:
        InvalidOperationError: If no engine is registered under ``name``.
        BackendError: If the engine fails to initialize.
    """
    engine_cls: type[TransInterface] | None = TransInterface.registered.get(name)
    if engine_cls is None:
        msg: str = f"Translation engine not found: '{name}'. Registered: {sorted(TransInterface.registered)}"
        raise InvalidOperationError(msg)

    engine: TransInterface = engine_cls(**kwargs)
    engine.initialize(config)
    logger.info("Translation engine initialized: '%s'", name)
    logger.debug("Engine attributes: %s", engine.engine_attributes)
    return engine
