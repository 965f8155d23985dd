from __future__ import annotations

from functools import lru_cache
from importlib import resources
import json
from typing import Any

from jsonschema import Draft202012Validator

CONTROLLERS_SCHEMA = "controllers"
DRIVE_DETAIL_SCHEMA = "drive-detail"


def load_schema(name: str) -> dict[str, Any]:
    schema_path = resources.files("storcli_collector").joinpath(f"schemas/{name}.schema.json")
    return json.loads(schema_path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def get_validator(name: str, definition: str | None = None) -> Draft202012Validator:
    """Validator for a whole schema, or for one of its ``$defs`` entries."""
    schema = load_schema(name)
    if definition is not None:
        schema = {**schema, "$ref": f"#/$defs/{definition}"}
    return Draft202012Validator(schema=schema)


def _format_error(error: Any) -> str:
    location = "/".join(str(part) for part in error.absolute_path)
    return f"{location}: {error.message}" if location else error.message


def validate_payload(payload: Any, name: str = CONTROLLERS_SCHEMA) -> list[str]:
    validator = get_validator(name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(map(str, e.path)))
    return [_format_error(error) for error in errors]


def invalid_fields(definition: str, section: dict[str, Any]) -> set[str]:
    """Names of the top-level fields in ``section`` that violate their declared type."""
    validator = get_validator(DRIVE_DETAIL_SCHEMA, definition)
    return {
        str(error.path[0])
        for error in validator.iter_errors(section)
        if error.path
    }
