from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightManager:
    """Shares one backend call between concurrent requests for the same key.

    The first caller for a key registers a future and performs the translation; later callers wait on
    that future instead of sending a duplicate request.

    Attributes:
        INFLIGHT_TIMEOUT_SEC (float): How long a waiting caller waits before giving up.
    """

    INFLIGHT_TIMEOUT_SEC: ClassVar[float] = 10.0

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[str]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    @staticmethod
    def make_key(original_key: str, source_lang: str, target_lang: str) -> str:
        return f"{original_key}|{source_lang}|{target_lang}"

    @property
    def pending(self) -> int:
        return len(self._inflight)

    async def mark_inflight_start(self, inflight_key: str) -> str | None:
        """Register a request, or wait for the one already in flight.

        Args:
            inflight_key (str): Key identifying the request.

        Returns:
            str | None: The result of the request already in flight, or None if the caller has just
            registered and must produce the result itself.

        Raises:
            TimeoutError: If the request in flight did not finish in time or was cancelled.
            Exception: Whatever the producer stored with ``store_inflight_exception``.
        """
        async with self._lock:
            if inflight_key not in self._inflight:
                loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
                self._inflight[inflight_key] = loop.create_future()
                logger.debug("Marked in-flight start for key: %s", inflight_key)
                return None
            fut: asyncio.Future[str] = self._inflight[inflight_key]
            logger.debug("In-flight translation detected for key: %s", inflight_key)

        try:
            result: str = await asyncio.wait_for(asyncio.shield(fut), timeout=self.INFLIGHT_TIMEOUT_SEC)
        except (TimeoutError, asyncio.CancelledError):
            logger.warning("In-flight translation did not complete for key: %s", inflight_key)
            async with self._lock:
                if self._inflight.get(inflight_key) is fut:
                    self._inflight.pop(inflight_key, None)
            msg: str = f"In-flight translation timed out for key: {inflight_key}"
            raise TimeoutError(msg) from None
        else:
            return result

    async def store_inflight_result(self, inflight_key: str, result: str) -> None:
        """Complete a registered request and wake its waiters."""
        async with self._lock:
            fut: asyncio.Future[str] | None = self._inflight.pop(inflight_key, None)
            if fut and not fut.done():
                fut.set_result(result)
            else:
                logger.warning("No in-flight future found or already done for key: %s", inflight_key)

    async def store_inflight_exception(self, inflight_key: str, exc: Exception) -> None:
        """Fail a registered request; its waiters receive ``exc``."""
        async with self._lock:
            fut: asyncio.Future[str] | None = self._inflight.pop(inflight_key, None)
            if fut and not fut.done():
                fut.set_exception(exc)
                # Nobody may be waiting; retrieve it so asyncio does not log it as unhandled.
                fut.exception()
            else:
                logger.warning("No in-flight future found or already done for key: %s", inflight_key)

    async def close(self) -> None:
        """Cancel every pending request."""
        async with self._lock:
            for fut in self._inflight.values():
                if not fut.done():
                    fut.cancel()
            self._inflight.clear()
        logger.debug("InFlightManager closed; in-flight state cleared")
