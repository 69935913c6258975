"""Key-mapping reconciliation.

Recovers a flat ``{original key: translated key}`` map from an original structural schema and an
independently translated copy of it.

Both schemas are walked with the same path rule. A path is made of structural positions only: every
object property contributes its ordinal position within its parent, joined with ``.``, and descending
into the items of an array of objects appends ``[]``. Because the path never contains a key name,
the two trees produce the same paths even though their names differ, and a key is mapped when the
translated tree has a property at the same path.

The map is flat: a name occurring at several paths gets a single translation, the first one met in
traversal order. Seed entries always win.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any

from json_key_translator.models.schema_models import StructuralSchema
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator, Mapping

    from json_key_translator.models.schema_models import KeyMap

__all__: list[str] = ["key_paths", "reconcile", "reconcile_positional"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ARRAY_SEGMENT: str = "[]"


def key_paths(schema: StructuralSchema | dict[str, Any]) -> dict[str, str]:
    """Map every property path of a schema to the property name found there.

    Args:
        schema (StructuralSchema | dict[str, Any]): Schema to walk.

    Returns:
        dict[str, str]: ``path -> property name``, e.g. ``{"0": "user", "0.0": "name"}``.
    """
    return dict(_iter_paths(StructuralSchema.from_dict(schema), ""))


def reconcile(
    original_schema: StructuralSchema | dict[str, Any],
    translated_schema: StructuralSchema | dict[str, Any],
    seed: Mapping[str, str] | None = None,
) -> KeyMap:
    """Derive the key map by matching property paths of the two schemas.

    Args:
        original_schema (StructuralSchema | dict[str, Any]): Schema of the source document.
        translated_schema (StructuralSchema | dict[str, Any]): The same schema with translated key names.
        seed (Mapping[str, str] | None): Existing mappings; they are kept as they are.

    Returns:
        KeyMap: Original name to translated name. Keys whose path is missing from the translated
        schema are left out; unrelated schemas give a sparse or empty map.

    Raises:
        SchemaBuildError: If either schema is malformed.
    """
    key_map: KeyMap = dict(seed or {})
    translated_paths: dict[str, str] = key_paths(translated_schema)

    unmatched: int = 0
    for path, name in _iter_paths(StructuralSchema.from_dict(original_schema), ""):
        translated_name: str | None = translated_paths.get(path)
        if not translated_name:
            unmatched += 1
            continue
        key_map.setdefault(name, translated_name)

    if unmatched:
        logger.info("%d schema paths had no counterpart in the translated schema", unmatched)
    logger.debug("Reconciled %d key mappings", len(key_map))
    return key_map


def reconcile_positional(
    original_schema: StructuralSchema | dict[str, Any],
    translated_schema: StructuralSchema | dict[str, Any],
    seed: Mapping[str, str] | None = None,
) -> KeyMap:
    """Pair the i-th original property with the i-th translated property, recursively.

    Deprecated: the pairing goes wrong as soon as the translated schema drops, adds or reorders a
    property, and nothing reports it. Later pairs overwrite earlier ones; seed entries are kept.
    Use :func:`reconcile` instead.
    """
    warnings.warn(
        "reconcile_positional() is deprecated; use reconcile()",
        DeprecationWarning,
        stacklevel=2,
    )
    key_map: KeyMap = dict(seed or {})
    seeded: frozenset[str] = frozenset(key_map)

    def _pair(original: StructuralSchema, translated: StructuralSchema) -> None:
        if original.is_object and translated.is_object and original.properties and translated.properties:
            for (name, member), (translated_name, translated_member) in zip(
                original.properties.items(), translated.properties.items(), strict=False
            ):
                if name not in seeded:
                    key_map[name] = translated_name
                _pair(member, translated_member)
        elif original.is_array and translated.is_array and original.items and translated.items:
            _pair(original.items, translated.items)

    _pair(StructuralSchema.from_dict(original_schema), StructuralSchema.from_dict(translated_schema))
    return key_map


def _iter_paths(node: StructuralSchema, path: str) -> Iterator[tuple[str, str]]:
    if node.is_object and node.properties:
        for index, (name, member) in enumerate(node.properties.items()):
            child: str = f"{path}.{index}" if path else str(index)
            yield child, name
            yield from _iter_paths(member, child)
    elif node.is_array and node.items is not None and node.items.is_object:
        yield from _iter_paths(node.items, f"{path}{ARRAY_SEGMENT}")
