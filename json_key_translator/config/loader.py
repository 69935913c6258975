"""INI configuration loading.

Each section of the file fills the `Config` dataclass of the same name. A value is converted to the
type of the field's default, so the dataclasses double as the schema of the file.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from json_key_translator.core.trans import TransInterface
from json_key_translator.models.config_models import Config
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
    "configure_logging",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

POSITIVE_SETTINGS: Final[tuple[tuple[str, str], ...]] = (
    ("TRANSLATION", "MAX_CACHE_SIZE"),
    ("TRANSLATION", "BATCH_SIZE"),
    ("TRANSLATION", "MAX_CONCURRENCY"),
)

# overrides accepted by ConfigLoader, as keyword -> (section, setting)
OVERRIDES: Final[dict[str, tuple[str, str]]] = {
    "engine": ("TRANSLATION", "ENGINE"),
    "source_language": ("TRANSLATION", "SOURCE_LANGUAGE"),
    "target_language": ("TRANSLATION", "TARGET_LANGUAGE"),
}

_QUOTES: Final[tuple[str, ...]] = ("'", '"')


class ConfigLoaderError(Exception):
    """Base class for configuration problems."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file cannot be parsed."""


class ConfigValueError(ConfigFormatError):
    """A setting has a value outside its allowed range or that cannot be converted."""


class ConfigTypeError(ConfigFormatError):
    """A setting has a value of the wrong type."""


def _strip_number(raw: str) -> str:
    value: str = raw.strip()
    for char in (*_QUOTES, "%"):
        value = value.removeprefix(char).removesuffix(char)
    return value


def _to_int(raw: str) -> int:
    return int(float(_strip_number(raw)))


def _to_float(raw: str) -> float:
    return float(_strip_number(raw))


def _to_str(raw: str) -> str:
    """Quoted values are unquoted with ``ast.literal_eval``; anything else is taken verbatim.

    Raises:
        TypeError: If a quoted value evaluates to something other than a str.
        SyntaxError: If a quoted value is not a valid literal.
    """
    value: str = raw.strip()
    if len(value) < 2 or value[0] != value[-1] or value[0] not in _QUOTES:
        return value
    unquoted: Any = ast.literal_eval(value)
    if not isinstance(unquoted, str):
        msg: str = f"expected a string, got {type(unquoted).__name__}"
        raise TypeError(msg)
    return unquoted


class ConfigLoader:
    """Load, convert and validate the INI configuration.

    Attributes:
        config (Config): The loaded configuration.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigFormatError: If the file cannot be parsed or holds invalid values.
    """

    def __init__(
        self,
        *,
        config_filename: str | Path,
        script_name: str = "json_key_translator",
        **args: Any,
    ) -> None:
        """Read ``config_filename`` and build the validated configuration.

        Args:
            config_filename (str | Path): INI file to read.
            script_name (str): Name of the calling program, used in the missing-file message.
            **args: ``debug`` (bool) forces debug logging; ``engine``, ``source_language`` and
                ``target_language`` (str) replace the file's values when not None.
        """
        path = Path(config_filename)
        if not path.is_file():
            msg: str = (
                f"Configuration file '{config_filename}' not found. "
                f"Create '{path.name}' next to '{script_name}' or pass its path."
            )
            raise ConfigFileNotFoundError(msg)

        self._parser: ConfigParser = ConfigParser()
        try:
            self._parser.read(path, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config: Config = Config()
        self._load_sections()
        self._apply_overrides(args)
        self._validate()

    def _load_sections(self) -> None:
        for section_field in fields(self.config):
            section_name: str = section_field.name
            if not self._parser.has_section(section_name):
                logger.debug("Section '%s' not defined; using defaults", section_name)
                continue

            section: Any = getattr(self.config, section_name)
            for setting in fields(section):
                if not self._parser.has_option(section_name, setting.name):
                    continue
                value: Any = self._convert(section_name, setting.name, getattr(section, setting.name))
                setattr(section, setting.name, value)

            known: set[str] = {setting.name.lower() for setting in fields(section)}
            for option in self._parser.options(section_name):
                if option not in known:
                    logger.debug("Ignoring unknown setting '%s.%s'", section_name, option)

    def _convert(self, section_name: str, key_name: str, default: Any) -> Any:
        """Convert one raw value to the type of ``default``.

        Raises:
            ConfigValueError: If the value cannot be converted.
            ConfigTypeError: If the value has the wrong type.
            ConfigFormatError: If the value is not a valid literal.
        """
        raw: str = self._parser.get(section_name, key_name)
        converters: dict[type, Callable[[], Any]] = {
            bool: lambda: self._parser.getboolean(section_name, key_name),
            int: lambda: _to_int(raw),
            float: lambda: _to_float(raw),
            str: lambda: _to_str(raw),
        }
        converter: Callable[[], Any] = converters.get(type(default), lambda: ast.literal_eval(raw))

        name: str = f"{section_name}.{key_name}"
        try:
            return converter()
        except ValueError as err:
            msg: str = f"Invalid value for {name}: {raw!r} ({err})"
            raise ConfigValueError(msg) from err
        except TypeError as err:
            msg = f"Invalid type for {name}: {raw!r} ({err})"
            raise ConfigTypeError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {name}: {raw!r}"
            raise ConfigFormatError(msg) from err

    def _apply_overrides(self, args: dict[str, Any]) -> None:
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        for keyword, (section_name, key_name) in OVERRIDES.items():
            if args.get(keyword) is not None:
                setattr(getattr(self.config, section_name), key_name, args[keyword])

    def _validate(self) -> None:
        """Check the engine name and the size settings.

        Raises:
            ConfigTypeError: If ``TRANSLATION.ENGINE`` is not a string.
            ConfigValueError: If a size setting is smaller than 1.
        """
        engine: Any = self.config.TRANSLATION.ENGINE
        if not isinstance(engine, str):
            msg: str = f"Unsupported type used for 'TRANSLATION.ENGINE': {type(engine)}"
            raise ConfigTypeError(msg)
        if engine not in TransInterface.registered:
            logger.warning(
                "Unknown value '%s' is set for 'TRANSLATION.ENGINE' (registered: %s)",
                engine,
                ", ".join(sorted(TransInterface.registered)),
            )

        for section_name, key_name in POSITIVE_SETTINGS:
            value: int = getattr(getattr(self.config, section_name), key_name)
            if value < 1:
                msg = f"'{section_name}.{key_name}' must be a positive integer: {value}"
                raise ConfigValueError(msg)


def configure_logging(config: Config) -> LoggerUtils:
    """Attach the log handlers described by the GENERAL section.

    ``DEBUG = true`` forces the DEBUG level; otherwise ``LOG_LEVEL`` is used.
    """
    logger_utils = LoggerUtils(config.GENERAL.LOG_FILE)
    logger_utils.set_level("DEBUG" if config.GENERAL.DEBUG else config.GENERAL.LOG_LEVEL)
    logger.debug("Logging configured: %s", logger_utils.get_level())
    return logger_utils
