"""Structural schema builder.

Converts a JSON value into a StructuralSchema that records only types and key shape.
Arrays are described by their first element only, so keys that appear only in later elements
are not part of the schema.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

from json_key_translator.models.schema_models import SchemaBuildError, StructuralSchema
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator

    from json_key_translator.models.schema_models import JsonValue

__all__: list[str] = ["build_schema", "generate_schema"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def build_schema(value: JsonValue) -> StructuralSchema:
    """Build the structural schema of a JSON value.

    Args:
        value (JsonValue): Any JSON value (as produced by ``json.loads``).

    Returns:
        StructuralSchema: Schema mirroring the key structure of ``value``.

    Raises:
        SchemaBuildError: If ``value`` contains a non-JSON value or a circular reference.
    """
    return _build(value, set())


def generate_schema(value: JsonValue) -> dict[str, Any]:
    """Build the structural schema of a JSON value in its plain dict form."""
    schema: dict[str, Any] = build_schema(value).to_dict()
    logger.debug("Schema generated: top-level type '%s'", schema["type"])
    return schema


def _build(value: Any, active: set[int]) -> StructuralSchema:
    match value:
        case None:
            return StructuralSchema("null")
        case bool():
            return StructuralSchema("boolean")
        case int() | float():
            return StructuralSchema("number")
        case str():
            return StructuralSchema("string")
        case list():
            with _visiting(value, active):
                if not value:
                    return StructuralSchema("array", items=StructuralSchema("null"))
                return StructuralSchema("array", items=_build(value[0], active))
        case dict():
            with _visiting(value, active):
                properties: dict[str, StructuralSchema] = {}
                for key, member in value.items():
                    if not isinstance(key, str):
                        msg: str = f"Object keys must be strings, got {type(key).__name__}: {key!r}"
                        raise SchemaBuildError(msg)
                    properties[key] = _build(member, active)
                return StructuralSchema("object", properties=properties)
        case _:
            msg = f"'{type(value).__name__}' is not a JSON value"
            raise SchemaBuildError(msg)


@contextlib.contextmanager
def _visiting(container: list[Any] | dict[str, Any], active: set[int]) -> Iterator[None]:
    """Track the containers on the current descent path to detect cycles."""
    marker: int = id(container)
    if marker in active:
        msg = "Circular reference detected while building schema"
        raise SchemaBuildError(msg)
    active.add(marker)
    try:
        yield
    finally:
        active.discard(marker)
