"""Schema compiler.

`compile_schema` walks a schema tree once, checks that it is well formed, and
turns every node into a small checking program. The resulting
`CompiledValidator` is immutable and is shared by every request that uses the
schema.

Error enumeration rules:

- Errors are produced lazily and depth-first, following property declaration
  order. Every call to `errors()` starts a fresh enumeration.
- At a node, every structural violation is reported before that node's
  refinement is considered.
- A refinement runs only when its base produced no errors at all, and a
  failing refinement produces exactly one record.
- When a node has the wrong type, nothing beneath it is checked.
"""

import json
import math
import re
import uuid
from collections.abc import Callable, Iterator
from datetime import date, datetime, time
from fractions import Fraction
from typing import Any

from schemaroute.errors import SchemaError
from schemaroute.schema.nodes import (
    STRING_FORMATS,
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullableSchema,
    NumberSchema,
    ObjectSchema,
    RefinedSchema,
    Schema,
    StringSchema,
)

from .models import ErrorRecord

# A compiled node: (value, path) -> errors
Program = Callable[[Any, str], Iterator[ErrorRecord]]

_EMAIL_RE = re.compile(r"[^@]+@[^@]+\.[^@]+")
_URI_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:.*$")


def join_path(path: str, key: str | int) -> str:
    """Append a property name or array index to a dot-joined path."""
    return f"{path}.{key}" if path else str(key)


def describe_type(value: Any) -> str:
    """Map a Python value to the schema type name used in error messages."""
    if value is None:
        return "null"
    type_map = {
        "str": "string",
        "int": "integer",
        "float": "number",
        "bool": "boolean",
        "list": "array",
        "tuple": "array",
        "dict": "object",
    }
    name = type(value).__name__
    return type_map.get(name, name)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_multiple(value: int | float, step: int | float) -> bool:
    # Integers are compared exactly; they may exceed float range
    if isinstance(value, int) and isinstance(step, int):
        return value % step == 0
    if isinstance(value, int) and value.bit_length() > 1023:
        return Fraction(value) % Fraction(step) == 0
    remainder = math.fmod(value, step)
    return math.isclose(remainder, 0, abs_tol=1e-9) or math.isclose(
        abs(remainder), step, abs_tol=1e-9
    )


def _check_format(value: str, fmt: str) -> bool:
    if fmt == "email":
        return bool(_EMAIL_RE.fullmatch(value))
    if fmt == "uri":
        return bool(_URI_RE.match(value))
    try:
        if fmt == "uuid":
            uuid.UUID(value)
        elif fmt == "date":
            date.fromisoformat(value)
        elif fmt == "time":
            time.fromisoformat(value)
        elif fmt == "date-time":
            datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _check_bounds(low: Any, high: Any, label: str, path: str) -> None:
    if low is not None and high is not None and low > high:
        raise SchemaError(f"{label}: minimum {low} is greater than maximum {high}", path=path)


def _check_non_negative(value: Any, label: str, path: str) -> None:
    if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
        raise SchemaError(f"{label} must be a non-negative integer, got {value!r}", path=path)


def _compile_string(schema: StringSchema, path: str) -> Program:
    _check_non_negative(schema.min_length, "min_length", path)
    _check_non_negative(schema.max_length, "max_length", path)
    _check_bounds(schema.min_length, schema.max_length, "String length", path)
    if schema.format is not None and schema.format not in STRING_FORMATS:
        raise SchemaError(f"Unknown string format '{schema.format}'", path=path)
    pattern = None
    if schema.pattern is not None:
        try:
            pattern = re.compile(schema.pattern)
        except re.error as e:
            raise SchemaError(f"Invalid pattern '{schema.pattern}': {e}", path=path) from e

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        if not isinstance(value, str):
            yield ErrorRecord(path=at, message=f"Expected string, got {describe_type(value)}")
            return
        if schema.min_length is not None and len(value) < schema.min_length:
            yield ErrorRecord(
                path=at, message=f"String must be at least {schema.min_length} characters long"
            )
        if schema.max_length is not None and len(value) > schema.max_length:
            yield ErrorRecord(
                path=at, message=f"String must be at most {schema.max_length} characters long"
            )
        if pattern is not None and not pattern.search(value):
            yield ErrorRecord(path=at, message=f"String must match pattern '{schema.pattern}'")
        if schema.format is not None and not _check_format(value, schema.format):
            yield ErrorRecord(path=at, message=f"Invalid {schema.format} format")
        if schema.enum is not None and value not in schema.enum:
            yield ErrorRecord(path=at, message=f"Value must be one of: {list(schema.enum)}")

    return check


def _compile_number(schema: NumberSchema, path: str) -> Program:
    integer = isinstance(schema, IntegerSchema)
    _check_bounds(schema.minimum, schema.maximum, "Number range", path)
    if schema.multiple_of is not None and not (
        _is_number(schema.multiple_of) and schema.multiple_of > 0
    ):
        raise SchemaError(f"multiple_of must be a positive number, got {schema.multiple_of!r}", path)
    expected = "integer" if integer else "number"

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        valid_type = (
            isinstance(value, int) and not isinstance(value, bool)
            if integer
            else _is_number(value) and (not isinstance(value, float) or math.isfinite(value))
        )
        if not valid_type:
            yield ErrorRecord(path=at, message=f"Expected {expected}, got {describe_type(value)}")
            return
        if schema.minimum is not None and value < schema.minimum:
            yield ErrorRecord(path=at, message=f"Value must be >= {schema.minimum}")
        if schema.maximum is not None and value > schema.maximum:
            yield ErrorRecord(path=at, message=f"Value must be <= {schema.maximum}")
        if schema.exclusive_minimum is not None and value <= schema.exclusive_minimum:
            yield ErrorRecord(path=at, message=f"Value must be > {schema.exclusive_minimum}")
        if schema.exclusive_maximum is not None and value >= schema.exclusive_maximum:
            yield ErrorRecord(path=at, message=f"Value must be < {schema.exclusive_maximum}")
        if schema.multiple_of is not None:
            if not _is_multiple(value, schema.multiple_of):
                yield ErrorRecord(path=at, message=f"Value must be multiple of {schema.multiple_of}")
        if schema.enum is not None and value not in schema.enum:
            yield ErrorRecord(path=at, message=f"Value must be one of: {list(schema.enum)}")

    return check


def _compile_boolean(schema: BooleanSchema, path: str) -> Program:
    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        if not isinstance(value, bool):
            yield ErrorRecord(path=at, message=f"Expected boolean, got {describe_type(value)}")

    return check


def _unique_key(item: Any) -> str:
    # json keeps True and 1 apart, unlike set membership
    return json.dumps(item, sort_keys=True, default=repr)


def _compile_array(schema: ArraySchema, path: str) -> Program:
    _check_non_negative(schema.min_items, "min_items", path)
    _check_non_negative(schema.max_items, "max_items", path)
    _check_bounds(schema.min_items, schema.max_items, "Array size", path)
    items = _compile_node(schema.items, join_path(path, "items"))

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        if not isinstance(value, list | tuple):
            yield ErrorRecord(path=at, message=f"Expected array, got {describe_type(value)}")
            return
        if schema.min_items is not None and len(value) < schema.min_items:
            yield ErrorRecord(path=at, message=f"Array must have at least {schema.min_items} items")
        if schema.max_items is not None and len(value) > schema.max_items:
            yield ErrorRecord(path=at, message=f"Array must have at most {schema.max_items} items")
        if schema.unique_items and len({_unique_key(v) for v in value}) != len(value):
            yield ErrorRecord(path=at, message="Array must contain unique items")
        for index, item in enumerate(value):
            yield from items(item, join_path(at, index))

    return check


def _compile_object(schema: ObjectSchema, path: str) -> Program:
    for key in schema.properties:
        if not isinstance(key, str):
            raise SchemaError(f"Property names must be strings, got {key!r}", path=path)
    if schema.required is not None:
        unknown = [k for k in schema.required if k not in schema.properties]
        if unknown:
            raise SchemaError(f"Required keys are not declared properties: {unknown}", path=path)

    properties = {
        key: _compile_node(child, join_path(path, key)) for key, child in schema.properties.items()
    }
    required = frozenset(schema.required_keys)

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        if not isinstance(value, dict):
            yield ErrorRecord(path=at, message=f"Expected object, got {describe_type(value)}")
            return
        for key, program in properties.items():
            if key in value:
                yield from program(value[key], join_path(at, key))
            elif key in required:
                yield ErrorRecord(path=join_path(at, key), message="Missing required property")
        if not schema.additional_properties:
            for key in value:
                if key not in properties:
                    yield ErrorRecord(path=join_path(at, key), message="Unexpected property")

    return check


def _compile_nullable(schema: NullableSchema, path: str) -> Program:
    inner = _compile_node(schema.inner, path)

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        if value is None:
            return
        yield from inner(value, at)

    return check


def _compile_refined(schema: RefinedSchema, path: str) -> Program:
    if schema.base is None:
        raise SchemaError("Refinement has no base type to refine", path=path)
    if not callable(schema.predicate):
        raise SchemaError("Refinement predicate must be callable", path=path)
    if not isinstance(schema.message, str) or not schema.message:
        raise SchemaError("Refinement message must be a non-empty string", path=path)
    base = _compile_node(schema.base, path)

    def check(value: Any, at: str) -> Iterator[ErrorRecord]:
        failed = False
        for error in base(value, at):
            failed = True
            yield error
        if not failed and not schema.predicate(value):
            yield ErrorRecord(path=at, message=schema.message)

    return check


def _compile_node(schema: Schema, path: str) -> Program:
    # Subclasses first: IntegerSchema is a NumberSchema
    if isinstance(schema, RefinedSchema):
        return _compile_refined(schema, path)
    if isinstance(schema, NullableSchema):
        return _compile_nullable(schema, path)
    if isinstance(schema, ObjectSchema):
        return _compile_object(schema, path)
    if isinstance(schema, ArraySchema):
        return _compile_array(schema, path)
    if isinstance(schema, StringSchema):
        return _compile_string(schema, path)
    if isinstance(schema, NumberSchema):
        return _compile_number(schema, path)
    if isinstance(schema, BooleanSchema):
        return _compile_boolean(schema, path)
    raise SchemaError(f"Unsupported schema node: {type(schema).__name__}", path=path)


class CompiledValidator:
    """Reusable checking program derived from a schema.

    Instances are immutable after construction and safe to share between
    concurrent requests.
    """

    __slots__ = ("_program", "schema")

    def __init__(self, schema: Schema):
        """Compile the schema.

        Args:
            schema: Root schema node

        Raises:
            SchemaError: If the schema is malformed
        """
        self.schema = schema
        self._program = _compile_node(schema, "")

    def errors(self, value: Any) -> Iterator[ErrorRecord]:
        """Lazily enumerate every violation of the schema by `value`."""
        return self._program(value, "")

    def check(self, value: Any) -> bool:
        """Return True iff `value` satisfies every constraint and refinement."""
        return next(self.errors(value), None) is None

    def __repr__(self) -> str:
        return f"CompiledValidator({self.schema.kind})"


def compile_schema(schema: Schema) -> CompiledValidator:
    """Compile a schema into a reusable validator.

    Compilation is a pure function of schema structure: compiling an
    equivalent schema again yields a validator with identical behavior.

    Raises:
        SchemaError: If the schema is malformed
    """
    return CompiledValidator(schema)
