"""
Schema Validation for persisted files.

Validates the save collection against
``schemas/save_collection.schema.json`` before it is used, so a hand-edited
or truncated file is caught at load time instead of deep inside the editor.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ..errors import StorageError

COLLECTION_SCHEMA_VERSION = 1

# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / "schemas" / f"{name}.schema.json"
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


def validate_collection(data: Any, path: str = "") -> None:
    """
    Validate a save collection document.

    Args:
        data: Parsed JSON document
        path: File path, for error messages

    Raises:
        StorageError: If the document does not match the schema or has an
            unsupported version
    """
    schema = _load_schema("save_collection")
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        raise StorageError(
            f"Save collection invalid at {location or '<root>'}: {e.message}",
            path=path,
            errors=[e.message],
        ) from e

    version = data["version"]
    if version > COLLECTION_SCHEMA_VERSION:
        raise StorageError(
            f"Unsupported save collection version: {version} "
            f"(expected <= {COLLECTION_SCHEMA_VERSION})",
            path=path,
        )
