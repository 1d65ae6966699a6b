"""Schema to OpenAPI 3.1 schema object conversion.

Conversion is side-effect free apart from recording named components in the
`ComponentCollector` passed in, and never runs validation logic. Converting
an equivalent schema twice produces equal documents.

Mapping rules:

- object   -> `type: object`, ordered `properties`, `required`
- array    -> `type: array`, `items`, item bounds
- string / number / integer / boolean -> native type with constraints
- nullable -> `anyOf: [<inner>, {type: null}]`
- refined  -> the base node plus an `x-refinements` entry holding the
  refinement message (OpenAPI has no notion of an arbitrary predicate)
- a node with a `name` -> stored once under `components.schemas` and
  replaced by a `$ref`
"""

import json
import logging
from typing import Any

from schemaroute.errors import DocGenerationError
from schemaroute.schema.nodes import (
    ArraySchema,
    BaseSchema,
    BooleanSchema,
    IntegerSchema,
    NullableSchema,
    NumberSchema,
    ObjectSchema,
    RefinedSchema,
    Schema,
    StringSchema,
    unwrap,
)

logger = logging.getLogger(__name__)

REF_PREFIX = "#/components/schemas/"


class ComponentCollector:
    """Collects named schemas while documents are being converted.

    A name maps to exactly one schema. Registering a different schema under a
    name that is already taken is a documentation error.
    """

    def __init__(self) -> None:
        self._sources: dict[str, Schema] = {}
        self._documents: dict[str, dict[str, Any]] = {}

    async def add(self, name: str, schema: Schema) -> dict[str, Any]:
        """Register `schema` under `name` and return a reference to it.

        Raises:
            DocGenerationError: If `name` is already bound to a different schema
        """
        existing = self._sources.get(name)
        if existing is not None:
            if existing != schema:
                raise DocGenerationError(
                    f"Component name '{name}' is used by two different schemas"
                )
            return {"$ref": f"{REF_PREFIX}{name}"}

        self._sources[name] = schema
        self._documents[name] = await _convert_inline(schema, self)
        logger.debug(f"Registered component schema '{name}'")
        return {"$ref": f"{REF_PREFIX}{name}"}

    def schemas(self) -> dict[str, dict[str, Any]]:
        """Return the collected component documents, sorted by name."""
        return {name: self._documents[name] for name in sorted(self._documents)}


def _json_value(value: Any, what: str) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError) as e:
        raise DocGenerationError(f"{what} {value!r} is not JSON serializable") from e
    return value


def _common(doc: dict[str, Any], schema: BaseSchema) -> dict[str, Any]:
    if schema.description is not None:
        doc["description"] = schema.description
    if schema.has_default:
        doc["default"] = _json_value(schema.default, "Default value")
    if schema.examples is not None:
        doc["examples"] = _json_value(list(schema.examples), "Examples")
    return doc


def _has_default(schema: Schema) -> bool:
    while True:
        if schema.has_default:
            return True
        if isinstance(schema, RefinedSchema):
            schema = schema.base
        elif isinstance(schema, NullableSchema):
            schema = schema.inner
        else:
            return False


async def _convert_object(schema: ObjectSchema, components: ComponentCollector | None) -> dict:
    doc: dict[str, Any] = {"type": "object"}
    properties = {}
    for key, child in schema.properties.items():
        properties[key] = await convert(child, components)
    doc["properties"] = properties
    # A field with a default may be omitted by clients
    required = [k for k in schema.required_keys if not _has_default(schema.properties[k])]
    if required:
        doc["required"] = required
    if schema.additional_properties:
        doc["additionalProperties"] = True
    return doc


async def _convert_array(schema: ArraySchema, components: ComponentCollector | None) -> dict:
    doc: dict[str, Any] = {"type": "array", "items": await convert(schema.items, components)}
    if schema.min_items is not None:
        doc["minItems"] = schema.min_items
    if schema.max_items is not None:
        doc["maxItems"] = schema.max_items
    if schema.unique_items:
        doc["uniqueItems"] = True
    return doc


def _convert_string(schema: StringSchema) -> dict:
    doc: dict[str, Any] = {"type": "string"}
    if schema.min_length is not None:
        doc["minLength"] = schema.min_length
    if schema.max_length is not None:
        doc["maxLength"] = schema.max_length
    if schema.pattern is not None:
        doc["pattern"] = schema.pattern
    if schema.format is not None:
        doc["format"] = schema.format
    if schema.enum is not None:
        doc["enum"] = list(schema.enum)
    return doc


def _convert_number(schema: NumberSchema) -> dict:
    doc: dict[str, Any] = {"type": "integer" if isinstance(schema, IntegerSchema) else "number"}
    for attr, key in (
        ("minimum", "minimum"),
        ("maximum", "maximum"),
        ("exclusive_minimum", "exclusiveMinimum"),
        ("exclusive_maximum", "exclusiveMaximum"),
        ("multiple_of", "multipleOf"),
    ):
        value = getattr(schema, attr)
        if value is not None:
            doc[key] = value
    if schema.enum is not None:
        doc["enum"] = list(schema.enum)
    return doc


async def _convert_refined(schema: RefinedSchema, components: ComponentCollector | None) -> dict:
    base_doc = await convert(schema.base, components)
    doc = dict(base_doc)
    entry: dict[str, Any] = {"message": schema.message}
    if schema.constraint is not None:
        entry["constraint"] = schema.constraint
    doc["x-refinements"] = [*base_doc.get("x-refinements", []), entry]
    return doc


async def _convert_inline(schema: Schema, components: ComponentCollector | None) -> dict:
    # Subclasses first: IntegerSchema is a NumberSchema
    doc: dict[str, Any]
    if isinstance(schema, RefinedSchema):
        doc = await _convert_refined(schema, components)
    elif isinstance(schema, NullableSchema):
        doc = {"anyOf": [await convert(schema.inner, components), {"type": "null"}]}
    elif isinstance(schema, ObjectSchema):
        doc = await _convert_object(schema, components)
    elif isinstance(schema, ArraySchema):
        doc = await _convert_array(schema, components)
    elif isinstance(schema, StringSchema):
        doc = _convert_string(schema)
    elif isinstance(schema, NumberSchema):
        doc = _convert_number(schema)
    elif isinstance(schema, BooleanSchema):
        doc = {"type": "boolean"}
    else:
        raise DocGenerationError(
            f"No documentation mapping for schema node {type(schema).__name__}"
        )
    return _common(doc, schema)


async def convert(schema: Schema, components: ComponentCollector | None = None) -> dict[str, Any]:
    """Convert a schema into an OpenAPI 3.1 schema object.

    Args:
        schema: Root schema node
        components: Collector for named nodes. Without one, named nodes are
            inlined so the result is self-contained.

    Returns:
        The documentation node

    Raises:
        DocGenerationError: If the schema has no representation
    """
    if components is not None and isinstance(schema, BaseSchema) and schema.name:
        return await components.add(schema.name, schema)
    return await _convert_inline(schema, components)


def describes_object(schema: Schema) -> ObjectSchema | None:
    """Return the object node behind refinements, or None for other shapes."""
    node = unwrap(schema)
    return node if isinstance(node, ObjectSchema) else None
