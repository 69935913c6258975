"""Translation engine implementations.

Importing this package registers every engine with `TransInterface`.

Modules:
- IdentityTranslation: returns keys unchanged.
- CustomTranslation: wraps caller-supplied functions.
- GoogleTranslation: Google Cloud Translation v2 REST API.
- DeeplTranslation: DeepL through the official SDK.
- DeepSeekTranslation: DeepSeek chat completions.
"""

from json_key_translator.core.trans.engines.custom import CustomTranslation
from json_key_translator.core.trans.engines.deepl import DeeplTranslation
from json_key_translator.core.trans.engines.deepseek import DeepSeekTranslation
from json_key_translator.core.trans.engines.google import GoogleTranslation
from json_key_translator.core.trans.engines.identity import IdentityTranslation

__all__: list[str] = [
    "CustomTranslation",
    "DeepSeekTranslation",
    "DeeplTranslation",
    "GoogleTranslation",
    "IdentityTranslation",
]
