"""JSON Schema utilities for tool input schemas."""

from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        return False, [f"invalid schema: {e.message}"]

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def normalize_input_schema(schema: Any) -> dict[str, Any]:
    """
    Coerce a tool's advertised input schema into an object schema.

    Servers occasionally omit the schema or send one without ``properties``;
    those are treated as tools without arguments.
    """
    if not isinstance(schema, dict):
        return {"type": "object", "properties": {}}

    normalized = dict(schema)
    normalized.setdefault("type", "object")
    if not isinstance(normalized.get("properties"), dict):
        normalized["properties"] = {}
    if not isinstance(normalized.get("required"), list):
        normalized.pop("required", None)

    return normalized
