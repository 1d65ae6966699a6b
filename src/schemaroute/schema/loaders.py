"""Schema loading utilities.

Schemas can be declared in YAML or JSON files using a JSON-schema-like
vocabulary:

```yaml
type: object
name: CreateUser
properties:
  email: {type: string, format: email}
  age: {type: integer, minimum: 0}
  nickname: {type: string, nullable: true, default: null}
required: [email, age]
```

Refinements carry Python callables and can only be declared in code.
"""

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from schemaroute.errors import SchemaError

from .nodes import (
    MISSING,
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullableSchema,
    NumberSchema,
    ObjectSchema,
    Schema,
    StringSchema,
)

# Structure of a schema definition document
DEFINITION_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$ref": "#/definitions/typeSchema",
    "definitions": {
        "typeSchema": {
            "type": "object",
            "required": ["type"],
            "additionalProperties": False,
            "properties": {
                "type": {
                    "type": "string",
                    "enum": ["string", "number", "integer", "boolean", "array", "object"],
                },
                "name": {"type": "string", "pattern": "^[A-Za-z0-9_.-]+$"},
                "description": {"type": "string"},
                "default": {},
                "examples": {"type": "array"},
                "nullable": {"type": "boolean"},
                "format": {
                    "type": "string",
                    "enum": ["email", "uri", "uuid", "date", "time", "date-time"],
                },
                "minLength": {"type": "integer", "minimum": 0},
                "maxLength": {"type": "integer", "minimum": 0},
                "pattern": {"type": "string"},
                "enum": {"type": "array", "minItems": 1},
                "minimum": {"type": "number"},
                "maximum": {"type": "number"},
                "exclusiveMinimum": {"type": "number"},
                "exclusiveMaximum": {"type": "number"},
                "multipleOf": {"type": "number", "exclusiveMinimum": 0},
                "items": {"$ref": "#/definitions/typeSchema"},
                "minItems": {"type": "integer", "minimum": 0},
                "maxItems": {"type": "integer", "minimum": 0},
                "uniqueItems": {"type": "boolean"},
                "properties": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/definitions/typeSchema"},
                },
                "required": {"type": "array", "items": {"type": "string"}},
                "additionalProperties": {"type": "boolean"},
            },
        }
    },
}


def validate_schema_structure(definition: dict[str, Any]) -> None:
    """Validate that a schema definition has the expected structure.

    Args:
        definition: Schema definition dictionary

    Raises:
        SchemaError: If the definition structure is invalid
    """
    try:
        jsonschema.validate(instance=definition, schema=DEFINITION_SCHEMA)
    except jsonschema.ValidationError as e:
        if e.absolute_path:
            path = ".".join(str(p) for p in e.absolute_path)
            raise SchemaError(f"Schema definition error: {e.message}", path=path) from e
        raise SchemaError(f"Schema definition error: {e.message}") from e


def _common(definition: dict[str, Any]) -> dict[str, Any]:
    examples = definition.get("examples")
    return {
        "description": definition.get("description"),
        "default": definition.get("default", MISSING),
        "examples": tuple(examples) if examples is not None else None,
        "name": definition.get("name"),
    }


def _build(definition: dict[str, Any], path: str) -> Schema:
    kind = definition["type"]
    common = _common(definition)
    nullable = definition.get("nullable", False)
    if nullable:
        # The default belongs to the wrapper so `null` can be a default
        wrapper_default = common.pop("default")
        wrapper_name = common.pop("name")
        common["default"] = MISSING
        common["name"] = None

    node: Schema
    if kind == "string":
        enum = definition.get("enum")
        node = StringSchema(
            min_length=definition.get("minLength"),
            max_length=definition.get("maxLength"),
            pattern=definition.get("pattern"),
            format=definition.get("format"),
            enum=tuple(enum) if enum is not None else None,
            **common,
        )
    elif kind in ("number", "integer"):
        cls = IntegerSchema if kind == "integer" else NumberSchema
        enum = definition.get("enum")
        node = cls(
            minimum=definition.get("minimum"),
            maximum=definition.get("maximum"),
            exclusive_minimum=definition.get("exclusiveMinimum"),
            exclusive_maximum=definition.get("exclusiveMaximum"),
            multiple_of=definition.get("multipleOf"),
            enum=tuple(enum) if enum is not None else None,
            **common,
        )
    elif kind == "boolean":
        node = BooleanSchema(**common)
    elif kind == "array":
        if "items" not in definition:
            raise SchemaError("Array schema requires 'items'", path=path)
        node = ArraySchema(
            items=_build(definition["items"], f"{path}.items" if path else "items"),
            min_items=definition.get("minItems"),
            max_items=definition.get("maxItems"),
            unique_items=definition.get("uniqueItems", False),
            **common,
        )
    else:
        properties = {
            key: _build(value, f"{path}.{key}" if path else key)
            for key, value in (definition.get("properties") or {}).items()
        }
        required = definition.get("required")
        node = ObjectSchema(
            properties=properties,
            # Definitions follow JSON schema: properties are optional unless listed
            required=tuple(required) if required is not None else (),
            additional_properties=definition.get("additionalProperties", False),
            **common,
        )

    if nullable:
        return NullableSchema(inner=node, default=wrapper_default, name=wrapper_name)
    return node


def schema_from_dict(definition: dict[str, Any]) -> Schema:
    """Build a schema tree from a definition dictionary.

    Args:
        definition: Schema definition (see module docstring)

    Returns:
        The root schema node

    Raises:
        SchemaError: If the definition is malformed
    """
    if not isinstance(definition, dict):
        raise SchemaError("Schema definition must be a mapping")
    validate_schema_structure(definition)
    return _build(definition, "")


def _parse_yaml(content: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML: {e}") from e


def _parse_json(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse JSON: {e}") from e


_PARSERS = {"yaml": _parse_yaml, "json": _parse_json}
_SUFFIX_FORMATS = {".yaml": "yaml", ".yml": "yaml", ".json": "json"}


def load_schema(content: str, format: str = "yaml") -> Schema:
    """Parse a YAML or JSON definition and build its schema tree.

    Raises:
        ValueError: If the format is unknown or the content does not parse
        SchemaError: If the parsed definition is malformed
    """
    parse = _PARSERS.get(format)
    if parse is None:
        raise ValueError(f"Unsupported format: {format}. Use one of {sorted(_PARSERS)}")
    return schema_from_dict(parse(content))


def load_schema_from_file(path: str | Path) -> Schema:
    """Build a schema tree from a `.yaml`, `.yml` or `.json` definition file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is unknown or the content does not parse
        SchemaError: If the parsed definition is malformed
    """
    path = Path(path)
    format = _SUFFIX_FORMATS.get(path.suffix.lower())
    if format is None:
        raise ValueError(
            f"Unsupported file extension: {path.suffix or '(none)'} "
            f"for {path}. Use one of {sorted(_SUFFIX_FORMATS)}"
        )
    if not path.is_file():
        raise FileNotFoundError(f"Schema file not found: {path}")
    return load_schema(path.read_text(encoding="utf-8"), format=format)
