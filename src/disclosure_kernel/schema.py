"""
Structural validation of content against a schema.

A schema is a JSON Schema object (Draft 2020-12 subset) describing the
content fields:

    {
        "$id": "schema:0x...",
        "type": "object",
        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        "required": ["name"],
        "additionalProperties": false
    }

The validator owns the content <-> schema cross-reference: every content
key must be a declared property unless the schema (or the nested object
declaration) sets "additionalProperties": true. Leaf type checks are
delegated to a SchemaService; the default one uses jsonschema.
"""

import json
from functools import lru_cache
from typing import Any, Mapping, Protocol

from jsonschema import Draft202012Validator

from .canonical import canonical_json
from .config import DEFAULT_OPTIONS, KernelOptions
from .content import Content, thaw_value
from .errors import SchemaMalformedError, SchemaMismatchError
from .hashing import get_hasher, hash_object, identifier_for

TYPE_TAGS = ("string", "integer", "number", "boolean", "object", "array", "null")

FORMATS = ("date", "time", "uri", "email", "date-time")

SCHEMA_MODEL: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://disclosure-kernel.dev/schema-model",
    "type": "object",
    "properties": {
        "$id": {"type": "string"},
        "$schema": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "type": {"const": "object"},
        "properties": {
            "type": "object",
            "additionalProperties": {"$ref": "#/$defs/property"},
        },
        "required": {"type": "array", "items": {"type": "string"}},
        "additionalProperties": {"type": "boolean"},
    },
    "required": ["type", "properties"],
    "additionalProperties": False,
    "$defs": {
        "property": {
            "type": "object",
            "properties": {
                "type": {"enum": list(TYPE_TAGS)},
                "description": {"type": "string"},
                "format": {"enum": list(FORMATS)},
                "enum": {"type": "array"},
                "const": {},
                "pattern": {"type": "string"},
                "minimum": {"type": "number"},
                "maximum": {"type": "number"},
                "minLength": {"type": "integer", "minimum": 0},
                "maxLength": {"type": "integer", "minimum": 0},
                "items": {"type": "object"},
                "properties": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/$defs/property"},
                },
                "required": {"type": "array", "items": {"type": "string"}},
                "additionalProperties": {"type": "boolean"},
            },
            "required": ["type"],
            "additionalProperties": False,
        },
    },
}


class SchemaService(Protocol):
    """Leaf type lookup and checking used by the structural validator."""

    def get_property_type(self, schema: Mapping[str, Any], field_path: str) -> str | None:
        ...

    def check_value(self, schema: Mapping[str, Any], field_path: str, value: Any) -> list[str]:
        ...


@lru_cache(maxsize=1)
def _model_validator() -> Draft202012Validator:
    return Draft202012Validator(SCHEMA_MODEL)


@lru_cache(maxsize=256)
def _property_validator(property_json: str) -> Draft202012Validator:
    return Draft202012Validator(
        json.loads(property_json),
        format_checker=Draft202012Validator.FORMAT_CHECKER,
    )


def _property_schema(schema: Mapping[str, Any], field_path: str) -> Mapping[str, Any] | None:
    node: Mapping[str, Any] = schema
    for part in field_path.split("."):
        properties = node.get("properties")
        if not isinstance(properties, Mapping) or part not in properties:
            return None
        node = properties[part]
    return node


class JsonSchemaService:
    """SchemaService backed by jsonschema's Draft 2020-12 validator."""

    def get_property_type(self, schema: Mapping[str, Any], field_path: str) -> str | None:
        prop = _property_schema(schema, field_path)
        if prop is None:
            return None
        return prop.get("type")

    def check_value(self, schema: Mapping[str, Any], field_path: str, value: Any) -> list[str]:
        prop = _property_schema(schema, field_path)
        if prop is None:
            return [f"{field_path}: no declared property"]
        validator = _property_validator(canonical_json(prop))
        return [error.message for error in validator.iter_errors(value)]


def check_schema(schema: Any) -> None:
    """
    Validate a schema against SCHEMA_MODEL.

    Raises:
        SchemaMalformedError: If the schema is not a supported schema object
    """
    if not isinstance(schema, Mapping):
        raise SchemaMalformedError(
            "Schema must be an object",
            {"received": type(schema).__name__},
        )
    errors = [
        f"{error.json_path}: {error.message}"
        for error in _model_validator().iter_errors(dict(schema))
    ]
    if errors:
        raise SchemaMalformedError(
            f"Schema does not match schema model: {errors[0]}",
            {"errors": errors},
        )


def schema_id_for(schema: Mapping[str, Any], options: KernelOptions | None = None) -> str:
    """
    Content-addressed schema identifier "<prefix>:<hash>".

    Computed over the schema without its own "$id".
    """
    opts = options or DEFAULT_OPTIONS
    hasher = get_hasher(opts)
    body = {k: v for k, v in schema.items() if k != "$id"}
    return identifier_for(opts.schema_id_prefix, hash_object(body, hasher), hasher)


def _validate_level(
    contents: Mapping[str, Any],
    level: Mapping[str, Any],
    schema: Mapping[str, Any],
    service: SchemaService,
    prefix: str,
) -> None:
    is_open = level.get("additionalProperties") is True

    for key, value in contents.items():
        path = f"{prefix}{key}"
        expected = service.get_property_type(schema, path)
        if expected is None:
            if is_open:
                continue
            raise SchemaMismatchError(path, None, "field is not declared by the schema")

        declared = _property_schema(schema, path) or {}
        if expected == "object" and isinstance(value, Mapping) and "properties" in declared:
            _validate_level(value, declared, schema, service, prefix=f"{path}.")
            continue

        errors = service.check_value(schema, path, value)
        if errors:
            raise SchemaMismatchError(path, expected, errors[0])

    for name in level.get("required", []):
        if name not in contents:
            path = f"{prefix}{name}"
            raise SchemaMismatchError(
                path,
                service.get_property_type(schema, path),
                "required field missing",
            )


def validate(
    content: Content,
    schema: Mapping[str, Any],
    service: SchemaService | None = None,
) -> None:
    """
    Check a Content object against a schema.

    Args:
        content: Content to check
        schema: Schema object (checked against SCHEMA_MODEL first)
        service: Leaf type checker (default: JsonSchemaService)

    Raises:
        SchemaMalformedError: If the schema itself is malformed
        SchemaMismatchError: If a field is undeclared, missing or mistyped,
            or the content names a different schema
    """
    check_schema(schema)
    schema_ref = schema.get("$id")
    if schema_ref is not None and schema_ref != content.schema_id:
        raise SchemaMismatchError(
            "schema_id",
            None,
            f"content is bound to {content.schema_id!r}, schema is {schema_ref!r}",
        )
    _validate_level(thaw_value(content.contents), schema, schema, service or JsonSchemaService(), prefix="")
