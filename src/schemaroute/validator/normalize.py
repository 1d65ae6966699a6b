"""Input normalization pipeline.

Raw request data goes through four stages, always in this order:

1. clean   - drop object keys the schema does not declare (closed objects)
2. default - fill declared defaults for absent fields
3. convert - lossless coercion toward the schema's leaf types
4. check   - compiled validation

Only a value that passes the check stage ever leaves the pipeline. On
failure the caller receives the error list and nothing else.

The stages never mutate their input; each one returns a new structure.
"""

import copy
import logging
import math
import re
from collections.abc import Callable
from typing import Any

from schemaroute.schema.nodes import (
    MISSING,
    ArraySchema,
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

from .compiler import CompiledValidator, compile_schema
from .models import ValidationFailure, ValidationResult, ValidationSuccess
from .targets import ValidationTarget

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# Observer receives (stage name, value after that stage)
StageObserver = Callable[[str, Any], None]


def clean(schema: Schema, value: Any, target: ValidationTarget | None = None) -> Any:
    """Recursively remove undeclared keys from closed objects.

    For the header target, top-level keys match declared names without regard
    to case and are renamed to the declared spelling.
    """
    fold_case = target == ValidationTarget.HEADER
    return _clean(schema, value, fold_case)


def _clean(schema: Schema, value: Any, fold_case: bool = False) -> Any:
    schema = unwrap(schema)
    if isinstance(schema, NullableSchema):
        return value if value is None else _clean(schema.inner, value, fold_case)
    if isinstance(schema, ObjectSchema) and isinstance(value, dict):
        if fold_case:
            declared = {key.lower(): key for key in schema.properties}
            value = {declared.get(str(k).lower(), k): v for k, v in value.items()}
        result = {}
        for key, item in value.items():
            if key in schema.properties:
                result[key] = _clean(schema.properties[key], item)
            elif schema.additional_properties:
                result[key] = item
        return result
    if isinstance(schema, ArraySchema) and isinstance(value, list | tuple):
        return [_clean(schema.items, item) for item in value]
    return value


def _declared_default(schema: Schema) -> Any:
    """Find the default for a node, looking through refinement and nullable wrappers."""
    while True:
        if schema.has_default:
            return schema.default
        if isinstance(schema, RefinedSchema):
            schema = schema.base
        elif isinstance(schema, NullableSchema):
            schema = schema.inner
        else:
            return MISSING


def apply_defaults(schema: Schema, value: Any) -> Any:
    """Recursively fill declared defaults for absent values.

    `MISSING` stands for an absent root value. Defaults are deep-copied so a
    request can never modify the value stored in the schema.
    """
    if value is MISSING:
        default = _declared_default(schema)
        if default is MISSING:
            return MISSING
        return apply_defaults(schema, copy.deepcopy(default))

    node = unwrap(schema)
    if isinstance(node, NullableSchema):
        return value if value is None else apply_defaults(node.inner, value)
    if isinstance(node, ObjectSchema) and isinstance(value, dict):
        result = dict(value)
        for key, child in node.properties.items():
            if key in result:
                result[key] = apply_defaults(child, result[key])
            else:
                default = _declared_default(child)
                if default is not MISSING:
                    result[key] = apply_defaults(child, copy.deepcopy(default))
        return result
    if isinstance(node, ArraySchema) and isinstance(value, list | tuple):
        return [apply_defaults(node.items, item) for item in value]
    return value


def _convert_number(value: Any, integer: bool) -> Any:
    if isinstance(value, str):
        if _INT_RE.match(value):
            try:
                return int(value)
            except ValueError:
                # Longer than the interpreter's integer string limit
                return value
        if _FLOAT_RE.match(value):
            parsed = float(value)
            if not math.isfinite(parsed):
                return value
            if integer:
                return int(parsed) if parsed.is_integer() else value
            return parsed
        return value
    if integer and isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def _convert_boolean(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        return value
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return bool(value)
    return value


def _convert_string(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int) or (isinstance(value, float) and math.isfinite(value)):
        return str(value)
    return value


def convert(schema: Schema, value: Any, target: ValidationTarget | None = None) -> Any:
    """Coerce values toward the schema's leaf types where that is lossless.

    Values that cannot be coerced are returned unchanged, so the check stage
    reports them.
    """
    string_sourced = target is not None and target != ValidationTarget.JSON
    return _convert(schema, value, string_sourced)


def _convert(schema: Schema, value: Any, string_sourced: bool) -> Any:
    node = unwrap(schema)
    if isinstance(node, NullableSchema):
        if value is None:
            return None
        if (
            string_sourced
            and value == "null"
            and not isinstance(unwrap(node.inner), StringSchema)
        ):
            return None
        return _convert(node.inner, value, string_sourced)
    if isinstance(node, ObjectSchema):
        if not isinstance(value, dict):
            return value
        return {
            key: _convert(node.properties[key], item, string_sourced)
            if key in node.properties
            else item
            for key, item in value.items()
        }
    if isinstance(node, ArraySchema):
        if isinstance(value, list | tuple):
            return [_convert(node.items, item, string_sourced) for item in value]
        if string_sourced and value is not None and not isinstance(value, dict):
            # A single occurrence of a repeatable query/form/header value
            return [_convert(node.items, value, string_sourced)]
        return value
    if isinstance(node, NumberSchema):
        return _convert_number(value, isinstance(node, IntegerSchema))
    if isinstance(node, BooleanSchema):
        return _convert_boolean(value)
    if isinstance(node, StringSchema):
        return _convert_string(value)
    return value


class NormalizationPipeline:
    """Clean, default, convert and check raw input for one schema.

    The schema is compiled once, when the pipeline is created.

    Example:
        >>> from schemaroute.schema import Type
        >>> pipeline = NormalizationPipeline(Type.object({"id": Type.number()}))
        >>> pipeline.apply(ValidationTarget.PARAM, {"id": "42", "extra": "x"})
        ValidationSuccess(data={'id': 42})
    """

    def __init__(self, schema: Schema, validator: CompiledValidator | None = None):
        """Initialize the pipeline.

        Args:
            schema: Schema the input must satisfy
            validator: Precompiled validator for `schema`; compiled here if omitted

        Raises:
            SchemaError: If the schema is malformed
        """
        self.schema = schema
        self.validator = validator or compile_schema(schema)

    def apply(
        self,
        target: ValidationTarget,
        raw: Any,
        observer: StageObserver | None = None,
    ) -> ValidationResult:
        """Normalize and validate `raw` for `target`.

        Args:
            target: The part of the request the value came from
            raw: Untrusted input; `MISSING` when the request carried none
            observer: Optional callback invoked after each stage with the
                stage name and the value it produced

        Returns:
            ValidationSuccess with the normalized value, or ValidationFailure
            with the error list
        """
        value = clean(self.schema, raw, target)
        if observer:
            observer("clean", value)
        value = apply_defaults(self.schema, value)
        if value is MISSING:
            value = None
        if observer:
            observer("default", value)
        value = convert(self.schema, value, target)
        if observer:
            observer("convert", value)

        errors = tuple(self.validator.errors(value))
        if observer:
            observer("check", errors)
        if errors:
            logger.debug(f"Validation failed for target '{target.value}': {len(errors)} error(s)")
            return ValidationFailure(errors=errors)
        return ValidationSuccess(data=value)
