from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import Draft202012Validator


class SchemaValidationError(ValueError):
    pass


def load_schema(path: Path) -> dict[str, Any]:
    schema = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise SchemaValidationError(f"Schema must be a JSON object: {path}")
    return schema


def check_schema(schema: dict[str, Any]) -> None:
    try:
        Draft202012Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        raise SchemaValidationError(f"Invalid JSON Schema: {e.message}") from e


def _error_location(error: jsonschema.ValidationError) -> str:
    return "/".join([str(p) for p in error.absolute_path]) or "<root>"


def schema_errors(instance: Any, schema: dict[str, Any], *, limit: int = 10) -> list[dict[str, str]]:
    """Return at most ``limit`` violations as ``{"path", "message"}`` dicts, ordered by path."""
    v = Draft202012Validator(schema)
    errors = sorted(v.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path])
    return [{"path": _error_location(e), "message": e.message} for e in errors[: max(0, limit)]]


def validate_json(instance: Any, schema_path: Path) -> None:
    schema = load_schema(schema_path)
    errors = schema_errors(instance, schema)
    if errors:
        msg_lines = [f"Schema validation failed for {schema_path}:"]
        for e in errors:
            msg_lines.append(f"- {e['path']}: {e['message']}")
        raise SchemaValidationError("\n".join(msg_lines))
