"""Translation caching: the bounded LRU cache and in-flight request sharing."""

from json_key_translator.core.cache.inflight_manager import InFlightManager
from json_key_translator.core.cache.manager import TranslationCache

__all__: list[str] = ["InFlightManager", "TranslationCache"]
