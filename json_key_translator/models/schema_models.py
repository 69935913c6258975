"""Models for structural schemas.

Defines the JSON value alias, the StructuralSchema data class and the error raised for input
that cannot be described by a structural schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Literal, TypeAlias

__all__: list[str] = [
    "SCHEMA_TYPES",
    "JsonValue",
    "KeyMap",
    "SchemaBuildError",
    "SchemaType",
    "StructuralSchema",
]

JsonValue: TypeAlias = "dict[str, JsonValue] | list[JsonValue] | str | int | float | bool | None"
KeyMap: TypeAlias = "dict[str, str]"
SchemaType: TypeAlias = 'Literal["string", "number", "boolean", "null", "array", "object"]'

SCHEMA_TYPES: Final[frozenset[str]] = frozenset({"string", "number", "boolean", "null", "array", "object"})

# Other schema generators emit these; they carry no extra structure.
_TYPE_ALIASES: Final[dict[str, str]] = {"integer": "number"}


class SchemaBuildError(Exception):
    """The input cannot be described by a structural schema (non-JSON, circular or malformed)."""


@dataclass
class StructuralSchema:
    """Structure-only description of a JSON value.

    Attributes:
        type (SchemaType): JSON type of the described value.
        properties (dict[str, StructuralSchema] | None): Object members in enumeration order.
            Only set for the ``object`` type.
        items (StructuralSchema | None): Element schema, derived from the first element only.
            Only set for the ``array`` type.
    """

    type: SchemaType
    properties: dict[str, StructuralSchema] | None = None
    items: StructuralSchema | None = None

    def __post_init__(self) -> None:
        if self.type not in SCHEMA_TYPES:
            msg: str = f"Unknown schema type: '{self.type}'"
            raise SchemaBuildError(msg)
        if self.type == "object" and self.properties is None:
            self.properties = {}
        if self.type == "array" and self.items is None:
            self.items = StructuralSchema("null")

    @property
    def is_object(self) -> bool:
        return self.type == "object"

    @property
    def is_array(self) -> bool:
        return self.type == "array"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the plain ``{type, properties}`` / ``{type, items}`` / ``{type}`` form."""
        if self.type == "object" and self.properties is not None:
            return {
                "type": "object",
                "properties": {key: value.to_dict() for key, value in self.properties.items()},
            }
        if self.type == "array" and self.items is not None:
            return {"type": "array", "items": self.items.to_dict()}
        return {"type": self.type}

    @classmethod
    def from_dict(cls, data: Any) -> StructuralSchema:
        """Parse the plain dict form.

        Translated schemas frequently come back from external tools, so the parser is lenient:
        a node with ``properties`` but no ``type`` is an object, a node with ``items`` but no
        ``type`` is an array, and ``integer`` is read as ``number``.

        Args:
            data (Any): Schema node in dict form.

        Returns:
            StructuralSchema: The parsed schema.

        Raises:
            SchemaBuildError: If a node is not a mapping or has an unknown type.
        """
        if isinstance(data, StructuralSchema):
            return data
        if not isinstance(data, Mapping):
            msg: str = f"Schema node must be a mapping, got {type(data).__name__}"
            raise SchemaBuildError(msg)

        raw_type: Any = data.get("type")
        if raw_type is None:
            if "properties" in data:
                raw_type = "object"
            elif "items" in data:
                raw_type = "array"
            else:
                raw_type = "null"
        if not isinstance(raw_type, str):
            msg = f"Schema type must be a string, got {raw_type!r}"
            raise SchemaBuildError(msg)
        schema_type: str = _TYPE_ALIASES.get(raw_type, raw_type)

        if schema_type == "object":
            raw_properties: Any = data.get("properties") or {}
            if not isinstance(raw_properties, Mapping):
                msg = "Schema 'properties' must be a mapping"
                raise SchemaBuildError(msg)
            return cls(
                "object",
                properties={str(key): cls.from_dict(value) for key, value in raw_properties.items()},
            )
        if schema_type == "array":
            raw_items: Any = data.get("items")
            return cls("array", items=cls.from_dict(raw_items) if raw_items is not None else None)
        return cls(schema_type)  # type: ignore[arg-type]
