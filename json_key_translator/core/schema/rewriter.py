"""Key map application.

Rewrites JSON documents (and structural schemas) with a resolved key map. Both functions build a new
object graph and leave their input untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from json_key_translator.models.schema_models import StructuralSchema
from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator, Mapping

    from json_key_translator.models.schema_models import JsonValue

__all__: list[str] = ["apply_key_map", "merge_key_translations", "rename_schema_keys"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def apply_key_map(value: JsonValue, key_map: Mapping[str, str], preserve_original: bool = False) -> JsonValue:  # noqa: FBT001, FBT002
    """Rename object keys throughout a JSON document.

    Keys missing from ``key_map`` (or mapped to an empty string) keep their name. Values are rewritten
    before they are assigned, whether or not their own key was translated.

    Args:
        value (JsonValue): Document to rewrite.
        key_map (Mapping[str, str]): Original name to translated name.
        preserve_original (bool): Also keep each translated entry under its original key. Both keys
            refer to the same rewritten value.

    Returns:
        JsonValue: The rewritten document.
    """
    match value:
        case dict():
            result: dict[str, Any] = {}
            for key, member in value.items():
                translated_key: str = key_map.get(key) or key
                rewritten: Any = apply_key_map(member, key_map, preserve_original)
                if preserve_original and translated_key != key:
                    result[key] = rewritten
                result[translated_key] = rewritten
            return result
        case list():
            return [apply_key_map(item, key_map, preserve_original) for item in value]
        case _:
            return value


def rename_schema_keys(
    schema: StructuralSchema | dict[str, Any],
    translations: Mapping[str, str],
) -> StructuralSchema:
    """Build the translated counterpart of a schema from per-key translations.

    When two properties of the same object would end up with the same translated name, the later one
    keeps its original name, so each object keeps its property count.

    Args:
        schema (StructuralSchema | dict[str, Any]): The original schema.
        translations (Mapping[str, str]): Per-key translations.

    Returns:
        StructuralSchema: A new schema with renamed properties.
    """
    node: StructuralSchema = StructuralSchema.from_dict(schema)
    if node.is_object and node.properties is not None:
        properties: dict[str, StructuralSchema] = {}
        for key, member in node.properties.items():
            translated_key: str = translations.get(key) or key
            if translated_key in properties or (translated_key != key and translated_key in node.properties):
                logger.warning(
                    "Translated key '%s' for '%s' collides with a sibling key; keeping the original name",
                    translated_key,
                    key,
                )
                translated_key = key
            properties[translated_key] = rename_schema_keys(member, translations)
        return StructuralSchema("object", properties=properties)
    if node.is_array and node.items is not None:
        return StructuralSchema("array", items=rename_schema_keys(node.items, translations))
    return StructuralSchema(node.type)


def _sibling_groups(value: JsonValue) -> Iterator[list[str]]:
    """Yield the key list of every object in a document."""
    stack: list[Any] = [value]
    while stack:
        node: Any = stack.pop()
        if isinstance(node, dict):
            yield list(node)
            stack.extend(node.values())
        elif isinstance(node, list):
            stack.extend(node)


def merge_key_translations(
    value: JsonValue,
    key_map: Mapping[str, str],
    translations: Mapping[str, str],
) -> dict[str, str]:
    """Add translations of keys outside the schema to a key map without renaming onto a sibling.

    A translation is dropped, and the key keeps its name, when in any object containing the key it
    would equal the name or the resolved translation of another key. Entries already in ``key_map``
    win over ``translations``.

    Args:
        value (JsonValue): The document the key map will be applied to.
        key_map (Mapping[str, str]): Resolved entries, usually from schema reconciliation.
        translations (Mapping[str, str]): Translations of the remaining keys, in document order.

    Returns:
        dict[str, str]: A new key map with an entry for every key of ``translations``.
    """
    merged: dict[str, str] = dict(key_map)
    pending: dict[str, str] = {key: translations[key] or key for key in translations if key not in merged}
    groups: list[list[str]] = [keys for keys in _sibling_groups(value) if not pending.keys().isdisjoint(keys)]

    for key, translated_key in pending.items():
        if translated_key != key and any(
            translated_key in _sibling_names(siblings, key, merged) for siblings in groups if key in siblings
        ):
            logger.warning(
                "Translated key '%s' for '%s' collides with a sibling key; keeping the original name",
                translated_key,
                key,
            )
            merged[key] = key
        else:
            merged[key] = translated_key
    return merged


def _sibling_names(siblings: list[str], key: str, key_map: Mapping[str, str]) -> set[str]:
    """Original and resolved names of the keys next to ``key``."""
    names: set[str] = set()
    for sibling in siblings:
        if sibling != key:
            names.update((sibling, key_map.get(sibling) or sibling))
    return names
