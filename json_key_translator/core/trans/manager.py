from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from json_key_translator.core.cache.inflight_manager import InFlightManager
from json_key_translator.core.trans.interface import (
    BackendError,
    NotSupportedLanguagesError,
    TranslationQuotaExceededError,
)
from json_key_translator.models.translation_models import DEFAULT_BATCH_SIZE, DEFAULT_MAX_CONCURRENCY
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable

    from json_key_translator.core.cache.manager import TranslationCache
    from json_key_translator.core.trans.interface import Result, TransInterface
    from json_key_translator.models.cache_models import CacheStatistics


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ADAPTIVE_LIMITER_ENABLED: bool = True
ADAPTIVE_LIMITER_BASE_COOLDOWN_SEC: float = 1.0
ADAPTIVE_LIMITER_MAX_COOLDOWN_SEC: float = 30.0
ADAPTIVE_LIMITER_RESET_SEC: float = 60.0


class TransManager:
    """Cached, batched and concurrent key translation through one engine.

    A key that cannot be translated resolves to itself, whatever the engine raised; only successful
    translations are cached.
    """

    def __init__(
        self,
        engine: TransInterface,
        *,
        source_lang: str,
        target_lang: str,
        cache: TranslationCache | None = None,
        inflight_manager: InFlightManager | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """Initialize the TransManager.

        Args:
            engine (TransInterface): Initialized translation engine.
            source_lang (str): Source language code.
            target_lang (str): Target language code.
            cache (TranslationCache | None): Cache for key translations; None disables caching.
            inflight_manager (InFlightManager | None): Shares concurrent requests for the same key.
                A new one is created when omitted.
            batch_size (int): Number of keys per batch request.
            max_concurrency (int): Number of batch requests allowed in flight at once.

        Raises:
            ValueError: If ``batch_size`` or ``max_concurrency`` is smaller than 1.
        """
        if batch_size < 1 or max_concurrency < 1:
            msg: str = f"batch_size and max_concurrency must be positive, got {batch_size} and {max_concurrency}"
            raise ValueError(msg)
        self.engine: TransInterface = engine
        self.source_lang: str = source_lang
        self.target_lang: str = target_lang
        self.cache: TranslationCache | None = cache
        self.inflight_manager: InFlightManager = inflight_manager or InFlightManager()
        self.batch_size: int = batch_size
        self.max_concurrency: int = max_concurrency
        self._rate_limit_error_count: int = 0
        self._rate_limit_last_error: float = 0.0
        self._rate_limit_until: float = 0.0

    async def _wait_for_cooldown(self) -> None:
        """Sleep until the rate-limit cooldown, if any, has elapsed."""
        if not ADAPTIVE_LIMITER_ENABLED:
            return
        remaining: float = self._rate_limit_until - time.monotonic()
        if remaining > 0:
            logger.warning("Translation temporarily throttled (%.1f sec remaining).", remaining)
            await asyncio.sleep(remaining)

    def _register_rate_limit(self) -> None:
        """Register a rate-limit event and extend the cooldown exponentially."""
        if not ADAPTIVE_LIMITER_ENABLED:
            return

        now: float = time.monotonic()
        if now - self._rate_limit_last_error > ADAPTIVE_LIMITER_RESET_SEC:
            self._rate_limit_error_count = 0

        self._rate_limit_error_count += 1
        self._rate_limit_last_error = now

        backoff: float = ADAPTIVE_LIMITER_BASE_COOLDOWN_SEC * (2 ** (self._rate_limit_error_count - 1))
        backoff = min(backoff, ADAPTIVE_LIMITER_MAX_COOLDOWN_SEC)

        self._rate_limit_until = max(self._rate_limit_until, now + backoff)

    def _handle_translation_failure(self, err: Exception, *, context: str) -> None:
        if isinstance(err, TranslationQuotaExceededError):
            logger.error("%s quota exceeded: %s", context, err)
        elif isinstance(err, NotSupportedLanguagesError):
            logger.error(
                "%s unsupported language pair (src: '%s', tgt: '%s'): %s",
                context,
                self.source_lang,
                self.target_lang,
                err,
            )
        elif self.engine.is_rate_limit_error(err):
            self._register_rate_limit()
            logger.warning("%s rate limit detected: %s", context, err)
        elif isinstance(err, BackendError):
            logger.error("%s failed: %s", context, err)
        else:
            logger.exception("%s failed with unexpected error.", context)

    def _fetch_cached_translation(self, key: str) -> str | None:
        if self.cache is None:
            return None
        return self.cache.get(key, self.source_lang, self.target_lang)

    def _write_translation_cache(self, key: str, translated: str) -> None:
        if self.cache is not None:
            self.cache.set(key, translated, self.source_lang, self.target_lang)

    async def translate_key(self, key: str) -> str:
        """Translate one key.

        The cache is consulted first, then a request already in flight for the same key is shared.
        Otherwise the engine is called.

        Returns:
            str: The translation, or ``key`` itself if the translation failed or came back empty.
        """
        if not key:
            return key

        cached: str | None = self._fetch_cached_translation(key)
        if cached is not None:
            logger.debug("Translation cache hit: '%s' -> '%s'", key, cached)
            return cached

        inflight_key: str = InFlightManager.make_key(key, self.source_lang, self.target_lang)
        registered: bool = True
        try:
            shared: str | None = await self.inflight_manager.mark_inflight_start(inflight_key)
        except TimeoutError:
            logger.warning("In-flight translation timeout for key: '%s'; translating directly", key)
            shared = None
            registered = False
        except Exception as err:  # noqa: BLE001
            self._handle_translation_failure(err, context="In-flight translation")
            return key

        if shared is not None:
            logger.debug("Received in-flight translation result: '%s' -> '%s'", key, shared)
            return shared

        try:
            await self._wait_for_cooldown()
            result: Result = await self.engine.translation(key, tgt_lang=self.target_lang, src_lang=self.source_lang)
            if not result.text:
                msg: str = f"Empty translation returned for '{key}'"
                raise BackendError(msg)
        except Exception as err:  # noqa: BLE001
            if registered:
                await self.inflight_manager.store_inflight_exception(inflight_key, err)
            self._handle_translation_failure(err, context="Translation")
            return key

        self._write_translation_cache(key, result.text)
        if registered:
            await self.inflight_manager.store_inflight_result(inflight_key, result.text)
        logger.debug("Translated key: '%s' -> '%s'", key, result.text)
        return result.text

    async def _translate_chunk(self, chunk: list[str]) -> list[str]:
        """Translate one batch; on failure fall back to one request per key."""
        try:
            await self._wait_for_cooldown()
            results: list[Result] = await self.engine.batch_translation(
                chunk, tgt_lang=self.target_lang, src_lang=self.source_lang
            )
            if len(results) != len(chunk):
                msg: str = f"Batch translation returned {len(results)} results for {len(chunk)} keys"
                raise BackendError(msg)
        except Exception as err:  # noqa: BLE001
            self._handle_translation_failure(err, context="Batch translation")
            logger.warning("Falling back to sequential translation for %d keys", len(chunk))
            return [await self.translate_key(key) for key in chunk]

        translated: list[str] = []
        for key, result in zip(chunk, results, strict=True):
            if result.text:
                self._write_translation_cache(key, result.text)
                translated.append(result.text)
            else:
                logger.warning("Empty translation returned for '%s'; keeping the original key", key)
                translated.append(key)
        return translated

    async def translate_keys(self, keys: Iterable[str]) -> dict[str, str]:
        """Translate many keys with as few backend requests as possible.

        Duplicates are collapsed and empty keys skipped. Cache hits are served directly; the remaining
        keys are split into batches of ``batch_size`` that run concurrently, at most ``max_concurrency``
        at a time. Results are collected by position, so completion order does not matter.

        Returns:
            dict[str, str]: Mapping of every unique non-empty key to its translation (or to itself).
        """
        unique_keys: list[str] = list(dict.fromkeys(key for key in keys if key))
        resolved: dict[str, str] = {}
        misses: list[str] = []
        for key in unique_keys:
            cached: str | None = self._fetch_cached_translation(key)
            if cached is None:
                misses.append(key)
            else:
                resolved[key] = cached

        chunks: list[list[str]] = [misses[i : i + self.batch_size] for i in range(0, len(misses), self.batch_size)]
        logger.debug(
            "Translating %d unique keys: %d cached, %d in %d batches",
            len(unique_keys),
            len(resolved),
            len(misses),
            len(chunks),
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(chunk: list[str]) -> list[str]:
            async with semaphore:
                return await self._translate_chunk(chunk)

        batches: list[list[str]] = await asyncio.gather(*(run(chunk) for chunk in chunks))
        for chunk, translated in zip(chunks, batches, strict=True):
            resolved.update(zip(chunk, translated, strict=True))

        return {key: resolved[key] for key in unique_keys}

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def cache_statistics(self) -> CacheStatistics | None:
        return self.cache.statistics() if self.cache is not None else None

    async def close(self, *, close_engine: bool = True) -> None:
        """Cancel pending in-flight requests and, unless told otherwise, close the engine.

        Args:
            close_engine (bool): Pass False when the engine is owned by the caller.
        """
        await self.inflight_manager.close()
        if close_engine:
            await self.engine.close()
        logger.info("TransManager closed")
