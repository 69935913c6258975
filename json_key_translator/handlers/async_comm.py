"""aiohttp client shared by the REST translation engines.

`AsyncHttp` keeps one session per engine, decodes bodies by content type and reports every transport
failure as an `AsyncCommError`, so engines only have to map HTTP statuses to translation errors.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Literal, Self, TypeAlias

import aiohttp
from aiohttp.client import ClientSession

from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = ["AsyncCommError", "AsyncCommInvalidContentTypeError", "AsyncCommTimeoutError", "AsyncHttp"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod: TypeAlias = 'Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]'
Decoder: TypeAlias = "Callable[[bytes], Any]"

CONNECT_TIMEOUT: Final[float] = 1.0


def _decode_text(raw: bytes) -> str:
    return raw.decode("utf-8")


def _decode_json(raw: bytes) -> Any:
    return json.loads(raw.decode("utf-8"))


def build_timeout(total_timeout: float) -> aiohttp.ClientTimeout:
    """Timeout for one request; zero or negative disables it.

    The connect phase is capped at ``CONNECT_TIMEOUT`` unless the whole budget is shorter.
    """
    if total_timeout <= 0:
        return aiohttp.ClientTimeout(total=None)
    if total_timeout < CONNECT_TIMEOUT:
        return aiohttp.ClientTimeout(total=total_timeout)
    return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)


class AsyncHttp:
    """Lazily opened aiohttp session with content-type decoders.

    The session needs a running event loop, so it is created by the first request (or on entering
    the async context) and created again after ``close()``.

    Attributes:
        content_handlers (dict[str, Decoder]): Body decoders keyed by media type. ``text/plain`` and
            ``application/json`` are registered by default.
    """

    def __init__(self, *, headers: dict[str, str] | None = None) -> None:
        """Create the client; no session is opened yet.

        Args:
            headers (dict[str, str] | None): Headers sent with every request, e.g. ``Authorization``.
        """
        self._headers: dict[str, str] = dict(headers or {})
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Decoder] = {}
        for media_type, decoder in (("text/plain", _decode_text), ("application/json", _decode_json)):
            self.add_handler(media_type, decoder)
        logger.debug("%s created", self.__class__.__name__)

    async def __aenter__(self) -> Self:
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def _is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Open the session unless one is already open."""
        if self._is_open():
            if not suppress_already_log:
                logger.debug("%s session already initialized", self.__class__.__name__)
            return
        self.__session = ClientSession(headers=self._headers, raise_for_status=True)
        logger.debug("%s session initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        if self.__session is None or self.__session.closed:
            msg = "The HTTP session is not open"
            raise RuntimeError(msg)
        return self.__session

    async def close(self) -> None:
        if self.__session is not None and not self.__session.closed:
            await self.__session.close()
            logger.debug("%s session closed", self.__class__.__name__)
        self.__session = None

    def add_handler(self, content_type: str, handler: Decoder) -> None:
        if content_type in self.content_handlers:
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler

    async def post(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        data: Any | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """POST ``data`` as a JSON body and return the decoded response.

        Raises:
            AsyncCommTimeoutError: If the server does not answer within ``total_timeout`` seconds.
            AsyncCommError: If the connection fails, the server answers with an error status or the body
                cannot be decoded.
        """
        return await self._request("POST", url=url, total_timeout=total_timeout, params=params, json=data)

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body with the handler registered for its media type.

        An empty body decodes to None.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the media type.
        """
        media_type: str = resp.headers.get("Content-Type", "").partition(";")[0].strip()
        body: bytes = await resp.read()
        if not body:
            logger.debug("Empty response body ('%s')", media_type)
            return None

        decoder: Decoder | None = self.content_handlers.get(media_type)
        if decoder is None:
            msg: str = f"Unknown Content-Type '{media_type}'"
            raise AsyncCommInvalidContentTypeError(msg)
        return decoder(body)

    async def _request(self, method: HTTPMethod, *, url: str, total_timeout: float, **kwargs: Any) -> Any:
        logger.debug("[%s] %s (timeout %s)", method, url, total_timeout)
        self.initialize_session(suppress_already_log=True)
        try:
            async with self.session.request(
                method=method, url=url, timeout=build_timeout(total_timeout), **kwargs
            ) as resp:
                return await self.decode_response(resp)
        except (TimeoutError, ConnectionResetError, aiohttp.ClientError, ValueError) as err:
            logger.debug("[%s] %s failed: %r", method, url, err)
            raise _as_comm_error(err) from err


def _as_comm_error(err: Exception) -> AsyncCommError:
    match err:
        case TimeoutError():
            return AsyncCommTimeoutError("Timeout due to a lack of response from the server.")
        case aiohttp.ClientResponseError():
            return AsyncCommError("Error response from the server.", response=err)
        case aiohttp.ClientConnectorError():
            return AsyncCommError("The server is not reachable.")
        case ValueError():
            return AsyncCommError("Malformed response body from the server.")
        case _:
            return AsyncCommError("The connection to the server has been disconnected.")


class AsyncCommError(Exception):
    """A request failed before a usable response was received.

    Attributes:
        msg (str): Error message, including the HTTP status when there is one.
        status (int | None): HTTP status of the error response, if the server answered.
    """

    def __init__(self, msg: str | BaseException, *, response: aiohttp.ClientResponseError | None = None) -> None:
        self.status: int | None = response.status if response is not None else None
        self.msg: str = str(msg) if self.status is None else f"{msg}: status='{self.status}'"
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """The server did not answer within the timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """No decoder is registered for the content type of a response."""
