"""Key extraction and deduplication.

Collects the unique key names that need a translation. Unlike the schema builder, extraction over a
document visits every array element: its output decides which keys are sent to the backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from json_key_translator.models.schema_models import StructuralSchema
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from json_key_translator.models.schema_models import JsonValue

__all__: list[str] = ["extract_keys", "extract_schema_keys"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def extract_keys(value: JsonValue) -> list[str]:
    """Return the unique object keys of a JSON document in first-encountered order.

    Args:
        value (JsonValue): The document to walk.

    Returns:
        list[str]: Unique key names at every depth, including those inside every array element.
    """
    found: dict[str, None] = {}

    def _walk(node: Any) -> None:
        match node:
            case dict():
                for key, member in node.items():
                    found.setdefault(key, None)
                    _walk(member)
            case list():
                for item in node:
                    _walk(item)
            case _:
                pass

    _walk(value)
    logger.debug("Extracted %d unique keys", len(found))
    return list(found)


def extract_schema_keys(schema: StructuralSchema | dict[str, Any]) -> list[str]:
    """Return the unique property names of a structural schema in first-encountered order."""
    found: dict[str, None] = {}

    def _walk(node: StructuralSchema) -> None:
        if node.is_object and node.properties:
            for key, member in node.properties.items():
                found.setdefault(key, None)
                _walk(member)
        elif node.is_array and node.items is not None:
            _walk(node.items)

    _walk(StructuralSchema.from_dict(schema))
    return list(found)
