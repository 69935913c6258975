"""Schema and key-mapping engine.

Builds structural schemas, extracts the keys to translate, reconciles an original schema with a
translated one into a key map, and applies key maps to JSON documents.
"""

from json_key_translator.core.schema.builder import build_schema, generate_schema
from json_key_translator.core.schema.extractor import extract_keys, extract_schema_keys
from json_key_translator.core.schema.reconciler import key_paths, reconcile, reconcile_positional
from json_key_translator.core.schema.rewriter import apply_key_map, merge_key_translations, rename_schema_keys
from json_key_translator.models.schema_models import SchemaBuildError

__all__: list[str] = [
    "SchemaBuildError",
    "apply_key_map",
    "build_schema",
    "extract_keys",
    "extract_schema_keys",
    "generate_schema",
    "key_paths",
    "merge_key_translations",
    "reconcile",
    "reconcile_positional",
    "rename_schema_keys",
]
