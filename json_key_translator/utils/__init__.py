"""Shared utilities for the JSON key translator."""

from json_key_translator.utils.logger_utils import LoggerUtils, LogLevel

__all__: list[str] = ["LogLevel", "LoggerUtils"]
