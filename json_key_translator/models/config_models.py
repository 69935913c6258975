"""Configuration data models for the key translator.

Each data class is one INI section; field names match the INI keys and the default values
determine how the raw strings are converted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Config",
    "DeepSeek",
    "General",
    "Google",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    LOG_LEVEL: str = "INFO"


@dataclass
class Translation:
    ENGINE: str = "identity"
    SOURCE_LANGUAGE: str = "en"
    TARGET_LANGUAGE: str = "zh"
    USE_CACHE: bool = True
    MAX_CACHE_SIZE: int = 1000
    BATCH_SIZE: int = 10
    MAX_CONCURRENCY: int = 4
    PRESERVE_ORIGINAL_KEYS: bool = False


@dataclass
class Google:
    ENDPOINT: str = "https://translation.googleapis.com/language/translate/v2"
    TIMEOUT: float = 10.0


@dataclass
class DeepSeek:
    ENDPOINT: str = "https://api.deepseek.com/v1/chat/completions"
    MODEL: str = "deepseek-chat"
    TEMPERATURE: float = 0.2
    TIMEOUT: float = 60.0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    GOOGLE: Google = field(default_factory=Google)
    DEEPSEEK: DeepSeek = field(default_factory=DeepSeek)
