"""Logging setup for the JsonKeyTranslator namespace.

Library modules obtain their logger with ``LoggerUtils.get_logger(__name__)`` and never attach
handlers themselves. An application that wants output creates ``LoggerUtils`` once; until then the
records propagate to whatever the host configured.
"""

from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, Handler, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, Literal, NamedTuple, Self, TextIO, TypeAlias

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = ["LogLevel", "LoggerUtils"]

LevelType: TypeAlias = 'Literal["NOTSET", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]'

DEFAULT_NAMESPACE: Final[str] = "JsonKeyTranslator"
DEFAULT_LOG_LEVEL: Final[int] = logging.INFO

CONSOLE_FORMAT: Final[str] = "%(message)s"
FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)-48s %(funcName)s:%(lineno)d\t%(message)s"
FILE_MAX_BYTES: Final[int] = 2 * 1024 * 1024
FILE_BACKUP_COUNT: Final[int] = 2


class LogLevel(NamedTuple):
    """Logging level as both name and numeric value."""

    name: str
    value: int


class LoggerUtils:
    """Singleton owning the handlers of the namespace logger.

    Attributes:
        namespace_logger (logging.Logger): The ``JsonKeyTranslator`` logger every module logger
            descends from.
    """

    _namespace: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path = "", *, use_null_console: bool = False) -> None:
        """Attach the console handler and, when ``filename`` is given, a rotating file handler.

        Only the first instantiation configures anything; later ones return the same object.

        Args:
            filename (str | Path): Log file path. Empty disables file logging.
            use_null_console (bool): Swallow console output (also chosen when there is no stderr).
        """
        if LoggerUtils._configured:
            return

        self.namespace_logger: logging.Logger = logging.getLogger(self._namespace)
        self.namespace_logger.setLevel(DEFAULT_LOG_LEVEL)

        if use_null_console or sys.stderr is None:
            self._attach(NullHandler())
        else:
            self._attach(self._console_handler())

        log_path: str = str(filename).strip()
        if log_path:
            file_handler: Handler | None = self._file_handler(log_path)
            if file_handler is not None:
                self._attach(file_handler)

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    @staticmethod
    def _console_handler() -> Handler:
        handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(Formatter(CONSOLE_FORMAT))
        return handler

    def _file_handler(self, log_path: str) -> Handler | None:
        """Rotating UTF-8 handler at DEBUG level, or None when the path cannot be opened."""
        try:
            handler = RotatingFileHandler(
                log_path, maxBytes=FILE_MAX_BYTES, backupCount=FILE_BACKUP_COUNT, encoding="utf-8"
            )
        except (FileNotFoundError, PermissionError):
            self.namespace_logger.error("Incorrect log file name: %s\nLogging to the file is not performed.", log_path)
            return None
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(Formatter(FILE_FORMAT))
        return handler

    def _attach(self, handler: Handler) -> None:
        if any(type(existing) is type(handler) for existing in self.namespace_logger.handlers):
            self.namespace_logger.warning("%s is already attached.", type(handler).__name__)
            handler.close()
            return
        self.namespace_logger.addHandler(handler)

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Replacement for ``warnings.showwarning`` that logs instead of printing."""
        _ = file, line
        self.namespace_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    @classmethod
    def initialize(cls, namespace: str) -> None:
        """Change the namespace before the first configuration.

        Raises:
            RuntimeError: If handlers are already attached.
        """
        if cls._configured:
            msg = "LoggerUtils is already configured. Reinitialization is not allowed."
            raise RuntimeError(msg)
        cls._namespace = namespace

    @classmethod
    def reset(cls) -> None:
        """Detach and close the handlers so that the next instantiation configures from scratch."""
        namespace_logger: logging.Logger = logging.getLogger(cls._namespace)
        for handler in list(namespace_logger.handlers):
            namespace_logger.removeHandler(handler)
            handler.close()
        cls._configured = False
        cls._instance = None

    def set_level(self, level: LevelType | str) -> None:
        """Set the namespace level by name; unknown names fall back to INFO with a warning."""
        numeric: int | None = logging.getLevelNamesMapping().get(level.upper())
        if numeric is None:
            self.namespace_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.namespace_logger.warning("Unknown logging level '%s' specified.\nLogging level set to 'INFO'.", level)
            return
        self.namespace_logger.setLevel(numeric)

    def get_level(self) -> LogLevel:
        effective: int = self.namespace_logger.getEffectiveLevel()
        return LogLevel(name=logging.getLevelName(effective), value=effective)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return a logger below the namespace; None returns the namespace logger itself."""
        namespace: str = LoggerUtils._namespace
        if not namespace:
            return logging.getLogger(name)
        return logging.getLogger(f"{namespace}.{name}" if name else namespace)
