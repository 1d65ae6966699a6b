"""Schema model for schemaroute.

A schema is a tree of frozen node objects drawn from a closed set of types:
object, array, string, number, integer, boolean, nullable wrapper and
refinement. The same tree drives request validation and documentation.

## Key Components

- `Type`: builder facade (`Type.object`, `Type.string`, `Type.refine`, ...)
- Node classes: `ObjectSchema`, `ArraySchema`, `StringSchema`, `NumberSchema`,
  `IntegerSchema`, `BooleanSchema`, `NullableSchema`, `RefinedSchema`
- Loaders: `schema_from_dict`, `load_schema`, `load_schema_from_file`

## Quick Example

```python
from schemaroute.schema import Type

CreateUser = Type.object(
    {
        "name": Type.refine(
            Type.string(max_length=32),
            lambda v: v.isprintable(),
            "Name must be printable",
        ),
        "age": Type.integer(minimum=0, default=0),
    },
    name="CreateUser",
)
```
"""

from .builders import Type
from .loaders import load_schema, load_schema_from_file, schema_from_dict, validate_schema_structure
from .nodes import (
    MISSING,
    STRING_FORMATS,
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
    is_schema,
    unwrap,
)

__all__ = [
    # Builder
    "Type",
    # Nodes
    "MISSING",
    "STRING_FORMATS",
    "BaseSchema",
    "Schema",
    "ObjectSchema",
    "ArraySchema",
    "StringSchema",
    "NumberSchema",
    "IntegerSchema",
    "BooleanSchema",
    "NullableSchema",
    "RefinedSchema",
    "is_schema",
    "unwrap",
    # Loaders
    "schema_from_dict",
    "load_schema",
    "load_schema_from_file",
    "validate_schema_structure",
]
