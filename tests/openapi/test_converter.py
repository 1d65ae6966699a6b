"""Tests for schema to OpenAPI conversion."""

import pytest

from schemaroute.errors import DocGenerationError
from schemaroute.openapi import ComponentCollector, convert
from schemaroute.schema import Type


class TestConvert:
    """Test node mapping rules."""

    async def test_object(self):
        schema = Type.object(
            {
                "name": Type.string(min_length=1, description="Display name"),
                "age": Type.integer(minimum=0, default=0),
                "email": Type.string(format="email"),
            },
            optional=["email"],
        )
        assert await convert(schema) == {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1, "description": "Display name"},
                "age": {"type": "integer", "minimum": 0, "default": 0},
                "email": {"type": "string", "format": "email"},
            },
            "required": ["name"],
        }

    async def test_property_order_preserved(self):
        schema = Type.object({"z": Type.string(), "a": Type.string(), "m": Type.string()})
        doc = await convert(schema)
        assert list(doc["properties"]) == ["z", "a", "m"]
        assert doc["required"] == ["z", "a", "m"]

    async def test_open_object(self):
        doc = await convert(Type.object({}, additional_properties=True))
        assert doc == {"type": "object", "properties": {}, "additionalProperties": True}

    async def test_array(self):
        doc = await convert(Type.array(Type.number(), min_items=1, unique_items=True))
        assert doc == {"type": "array", "items": {"type": "number"}, "minItems": 1, "uniqueItems": True}

    async def test_primitives(self):
        assert await convert(Type.boolean()) == {"type": "boolean"}
        assert await convert(Type.string(enum=["a", "b"], pattern="^[ab]$")) == {
            "type": "string",
            "pattern": "^[ab]$",
            "enum": ["a", "b"],
        }
        assert await convert(Type.number(exclusive_maximum=1, multiple_of=0.1)) == {
            "type": "number",
            "exclusiveMaximum": 1,
            "multipleOf": 0.1,
        }

    async def test_nullable(self):
        doc = await convert(Type.nullable(Type.string(), default=None))
        assert doc == {"anyOf": [{"type": "string"}, {"type": "null"}], "default": None}

    async def test_refinement_metadata(self):
        schema = Type.refine(
            Type.refine(Type.string(max_length=3), str.isalpha, "Letters only"),
            str.islower,
            "Lowercase only",
            constraint="lowercase",
        )
        doc = await convert(schema)
        assert doc == {
            "type": "string",
            "maxLength": 3,
            "x-refinements": [
                {"message": "Letters only"},
                {"message": "Lowercase only", "constraint": "lowercase"},
            ],
        }

    async def test_examples_copied(self):
        doc = await convert(Type.string(examples=["a", "b"]))
        assert doc["examples"] == ["a", "b"]

    async def test_idempotent(self):
        schema = Type.object(
            {"tags": Type.array(Type.nullable(Type.string())), "n": Type.integer(maximum=9)}
        )
        assert await convert(schema) == await convert(schema)

    async def test_never_runs_predicates(self):
        def predicate(value):
            raise AssertionError("predicate must not run during conversion")

        await convert(Type.refine(Type.string(), predicate, "message"))

    async def test_unserializable_default(self):
        with pytest.raises(DocGenerationError, match="not JSON serializable"):
            await convert(Type.string(default=object()))

    async def test_unknown_node(self):
        with pytest.raises(DocGenerationError, match="No documentation mapping"):
            await convert({"type": "string"})


class TestComponents:
    """Test named schema collection."""

    async def test_named_node_becomes_reference(self):
        user = Type.object({"id": Type.integer()}, name="User")
        components = ComponentCollector()
        doc = await convert(Type.array(user), components)
        assert doc == {"type": "array", "items": {"$ref": "#/components/schemas/User"}}
        assert components.schemas() == {
            "User": {"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"]}
        }

    async def test_named_node_inlined_without_collector(self):
        user = Type.object({"id": Type.integer()}, name="User")
        doc = await convert(user)
        assert doc["type"] == "object"

    async def test_same_schema_twice(self):
        components = ComponentCollector()
        first = await convert(Type.string(name="Code"), components)
        second = await convert(Type.string(name="Code"), components)
        assert first == second
        assert list(components.schemas()) == ["Code"]

    async def test_name_conflict(self):
        components = ComponentCollector()
        await convert(Type.string(name="Code"), components)
        with pytest.raises(DocGenerationError, match="two different schemas"):
            await convert(Type.integer(name="Code"), components)

    async def test_schemas_sorted(self):
        components = ComponentCollector()
        await components.add("b", Type.string())
        await components.add("a", Type.string())
        assert list(components.schemas()) == ["a", "b"]
