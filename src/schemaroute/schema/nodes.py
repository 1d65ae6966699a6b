"""Schema node types.

A schema is a tree built from a closed set of node types. Every consumer
(compiler, normalizer, documentation converter) dispatches over exactly
these classes and treats anything else as a malformed schema.

Nodes are frozen dataclasses. Two schemas built from the same arguments
compare equal, which is what makes compilation and documentation
conversion idempotent for equivalent schemas.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union


class _Missing:
    """Sentinel type for "no default declared"."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Missing":
        return self


MISSING: Any = _Missing()

# Formats understood by StringSchema
STRING_FORMATS = frozenset({"email", "uri", "uuid", "date", "time", "date-time"})


@dataclass(frozen=True, kw_only=True)
class BaseSchema:
    """Fields shared by every node.

    Attributes:
        description: Human readable description, copied into documentation.
        default: Value filled in when the field is absent. `MISSING` when no
            default is declared (so `None` is a valid default).
        examples: Example values, copied into documentation.
        name: When set, the node is a shared component and documentation
            references it by this name instead of inlining it.
    """

    description: str | None = None
    default: Any = MISSING
    examples: tuple[Any, ...] | None = None
    name: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def kind(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, kw_only=True)
class StringSchema(BaseSchema):
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None
    enum: tuple[str, ...] | None = None

    @property
    def kind(self) -> str:
        return "string"


@dataclass(frozen=True, kw_only=True)
class NumberSchema(BaseSchema):
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None
    multiple_of: int | float | None = None
    enum: tuple[int | float, ...] | None = None

    @property
    def kind(self) -> str:
        return "number"


@dataclass(frozen=True, kw_only=True)
class IntegerSchema(NumberSchema):
    """A number restricted to integral values."""

    @property
    def kind(self) -> str:
        return "integer"


@dataclass(frozen=True, kw_only=True)
class BooleanSchema(BaseSchema):
    @property
    def kind(self) -> str:
        return "boolean"


@dataclass(frozen=True, kw_only=True)
class ArraySchema(BaseSchema):
    items: "Schema"
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False

    @property
    def kind(self) -> str:
        return "array"


@dataclass(frozen=True, kw_only=True)
class ObjectSchema(BaseSchema):
    """An object with an ordered set of declared properties.

    Attributes:
        properties: Declared properties in declaration order. Error
            enumeration and documentation follow this order.
        required: Names of required properties. `None` means every declared
            property is required.
        additional_properties: When False (the default) the object is closed:
            undeclared keys are removed during normalization and rejected by
            the validator.
    """

    properties: Mapping[str, "Schema"] = field(default_factory=dict)
    required: tuple[str, ...] | None = None
    additional_properties: bool = False

    @property
    def kind(self) -> str:
        return "object"

    @property
    def required_keys(self) -> tuple[str, ...]:
        if self.required is None:
            return tuple(self.properties)
        # Keep declaration order
        return tuple(k for k in self.properties if k in self.required)


@dataclass(frozen=True, kw_only=True)
class NullableSchema(BaseSchema):
    inner: "Schema"

    @property
    def kind(self) -> str:
        return "nullable"


@dataclass(frozen=True, kw_only=True)
class RefinedSchema(BaseSchema):
    """A base schema plus a predicate checked after structural validation.

    Attributes:
        base: The schema the value must satisfy before the predicate runs.
        predicate: Callable receiving the structurally valid value.
        message: Error message reported when the predicate returns False.
        constraint: Optional human readable description of the predicate,
            used only in documentation.
    """

    base: "Schema"
    predicate: Callable[[Any], bool]
    message: str
    constraint: str | None = None

    @property
    def kind(self) -> str:
        return "refined"


Schema = Union[
    ObjectSchema,
    ArraySchema,
    StringSchema,
    NumberSchema,
    IntegerSchema,
    BooleanSchema,
    NullableSchema,
    RefinedSchema,
]

SCHEMA_TYPES: tuple[type, ...] = (
    ObjectSchema,
    ArraySchema,
    StringSchema,
    NumberSchema,
    BooleanSchema,
    NullableSchema,
    RefinedSchema,
)


def is_schema(value: Any) -> bool:
    """Return True if value is one of the supported node types."""
    return isinstance(value, SCHEMA_TYPES)


def unwrap(schema: Schema) -> Schema:
    """Strip refinements and return the underlying structural node."""
    while isinstance(schema, RefinedSchema):
        schema = schema.base
    return schema
