"""Builder facade for schema trees.

Example:
    >>> from schemaroute.schema import Type
    >>>
    >>> User = Type.object(
    ...     {
    ...         "id": Type.integer(minimum=1),
    ...         "name": Type.refine(
    ...             Type.string(),
    ...             lambda v: v == v.strip(),
    ...             "Name must not have surrounding whitespace",
    ...         ),
    ...         "nickname": Type.nullable(Type.string(), default=None),
    ...     },
    ...     optional=["nickname"],
    ...     name="User",
    ... )
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from schemaroute.errors import SchemaError

from .nodes import (
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
)


def _examples(examples: Iterable[Any] | None) -> tuple[Any, ...] | None:
    return tuple(examples) if examples is not None else None


class Type:
    """Namespace of constructors for every supported node type."""

    @staticmethod
    def string(
        *,
        min_length: int | None = None,
        max_length: int | None = None,
        pattern: str | None = None,
        format: str | None = None,
        enum: Iterable[str] | None = None,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> StringSchema:
        return StringSchema(
            min_length=min_length,
            max_length=max_length,
            pattern=pattern,
            format=format,
            enum=tuple(enum) if enum is not None else None,
            description=description,
            default=default,
            examples=_examples(examples),
            name=name,
        )

    @staticmethod
    def number(
        *,
        minimum: int | float | None = None,
        maximum: int | float | None = None,
        exclusive_minimum: int | float | None = None,
        exclusive_maximum: int | float | None = None,
        multiple_of: int | float | None = None,
        enum: Iterable[int | float] | None = None,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> NumberSchema:
        return NumberSchema(
            minimum=minimum,
            maximum=maximum,
            exclusive_minimum=exclusive_minimum,
            exclusive_maximum=exclusive_maximum,
            multiple_of=multiple_of,
            enum=tuple(enum) if enum is not None else None,
            description=description,
            default=default,
            examples=_examples(examples),
            name=name,
        )

    @staticmethod
    def integer(
        *,
        minimum: int | None = None,
        maximum: int | None = None,
        exclusive_minimum: int | None = None,
        exclusive_maximum: int | None = None,
        multiple_of: int | None = None,
        enum: Iterable[int] | None = None,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> IntegerSchema:
        return IntegerSchema(
            minimum=minimum,
            maximum=maximum,
            exclusive_minimum=exclusive_minimum,
            exclusive_maximum=exclusive_maximum,
            multiple_of=multiple_of,
            enum=tuple(enum) if enum is not None else None,
            description=description,
            default=default,
            examples=_examples(examples),
            name=name,
        )

    @staticmethod
    def boolean(
        *,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> BooleanSchema:
        return BooleanSchema(
            description=description, default=default, examples=_examples(examples), name=name
        )

    @staticmethod
    def array(
        items: Schema,
        *,
        min_items: int | None = None,
        max_items: int | None = None,
        unique_items: bool = False,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> ArraySchema:
        return ArraySchema(
            items=items,
            min_items=min_items,
            max_items=max_items,
            unique_items=unique_items,
            description=description,
            default=default,
            examples=_examples(examples),
            name=name,
        )

    @staticmethod
    def object(
        properties: Mapping[str, Schema],
        *,
        optional: Iterable[str] | None = None,
        additional_properties: bool = False,
        description: str | None = None,
        default: Any = MISSING,
        examples: Iterable[Any] | None = None,
        name: str | None = None,
    ) -> ObjectSchema:
        """Build an object schema.

        Every property is required unless listed in `optional`.

        Raises:
            SchemaError: If `optional` names a property that is not declared
        """
        required = None
        if optional is not None:
            optional_keys = set(optional)
            unknown = optional_keys - set(properties)
            if unknown:
                raise SchemaError(f"Optional keys are not declared properties: {sorted(unknown)}")
            required = tuple(k for k in properties if k not in optional_keys)
        return ObjectSchema(
            properties=dict(properties),
            required=required,
            additional_properties=additional_properties,
            description=description,
            default=default,
            examples=_examples(examples),
            name=name,
        )

    @staticmethod
    def nullable(
        inner: Schema,
        *,
        description: str | None = None,
        default: Any = MISSING,
        name: str | None = None,
    ) -> NullableSchema:
        return NullableSchema(inner=inner, description=description, default=default, name=name)

    @staticmethod
    def refine(
        base: Schema,
        predicate: Callable[[Any], bool],
        message: str,
        *,
        constraint: str | None = None,
        description: str | None = None,
        default: Any = MISSING,
        name: str | None = None,
    ) -> RefinedSchema:
        """Attach a predicate to `base`, checked only once `base` is satisfied."""
        return RefinedSchema(
            base=base,
            predicate=predicate,
            message=message,
            constraint=constraint,
            description=description,
            default=default,
            name=name,
        )
