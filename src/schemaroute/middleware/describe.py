"""Route documentation stages and response schema resolvers.

`describe_route` attaches operation documentation (summary, tags, response
descriptions) to a route. It has no runtime effect.

`resolver` wraps a schema used for a *response*: the documentation build
turns it into a schema object, and handlers can use it to check outgoing
values.

Example:
    ```python
    router.post(
        "/users/{id}",
        describe_route(
            summary="Create a user",
            responses={
                200: {
                    "description": "Created user",
                    "content": {"application/json": {"schema": resolver(UserResponse)}},
                },
            },
        ),
        validator("json", CreateUser),
    )(create_user)
    ```
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from schemaroute.errors import ResponseValidationError
from schemaroute.openapi.converter import ComponentCollector, convert
from schemaroute.schema.nodes import Schema, is_schema
from schemaroute.validator.compiler import compile_schema
from schemaroute.validator.models import ValidationFailure
from schemaroute.validator.normalize import NormalizationPipeline
from schemaroute.validator.targets import ValidationTarget

from .context import RequestContext
from .hooks import CONTINUE, HookResult


class SchemaResolver:
    """A response schema usable both for documentation and for checking values."""

    def __init__(self, schema: Schema):
        self.schema = schema
        self._pipeline = NormalizationPipeline(schema)

    async def build(self, components: ComponentCollector | None = None) -> dict[str, Any]:
        """Return the documentation node for the schema."""
        return await convert(self.schema, components)

    def validate(self, value: Any) -> Any:
        """Normalize and check `value`, returning the normalized value.

        Raises:
            ResponseValidationError: If the value does not satisfy the schema
        """
        result = self._pipeline.apply(ValidationTarget.JSON, value)
        if isinstance(result, ValidationFailure):
            raise ResponseValidationError(list(result.errors))
        return result.data


def resolver(schema: Schema) -> SchemaResolver:
    """Wrap a response schema for use in `describe_route(responses=...)`."""
    return SchemaResolver(schema)


@dataclass(frozen=True)
class RouteDescription:
    """Operation-level documentation for one route."""

    summary: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    operation_id: str | None = None
    responses: Mapping[int | str, Mapping[str, Any]] = field(default_factory=dict)
    deprecated: bool = False
    hide: bool = False


class DescribeStage:
    """Pipeline stage carrying a `RouteDescription`; always continues."""

    def __init__(self, description: RouteDescription):
        self.metadata = description

    def __repr__(self) -> str:
        return f"DescribeStage(summary={self.metadata.summary!r})"

    async def __call__(self, ctx: RequestContext) -> HookResult:
        return CONTINUE


def describe_route(
    *,
    summary: str | None = None,
    description: str | None = None,
    tags: Iterable[str] = (),
    operation_id: str | None = None,
    responses: Mapping[int | str, Mapping[str, Any]] | None = None,
    deprecated: bool = False,
    hide: bool = False,
) -> DescribeStage:
    """Attach OpenAPI operation documentation to a route.

    Args:
        summary: Short operation summary
        description: Longer operation description
        tags: Operation tags
        operation_id: Unique operation identifier
        responses: Mapping of status code to OpenAPI response objects. A
            media type's `schema` may be a `SchemaResolver`, a schema node or
            a ready-made schema dict.
        deprecated: Mark the operation as deprecated
        hide: Leave the route out of the generated document

    Raises:
        SchemaError: If a schema node given as a response schema is malformed
    """
    for response in (responses or {}).values():
        for media in response.get("content", {}).values():
            if is_schema(media.get("schema")):
                compile_schema(media["schema"])
    return DescribeStage(
        RouteDescription(
            summary=summary,
            description=description,
            tags=tuple(tags),
            operation_id=operation_id,
            responses=dict(responses or {}),
            deprecated=deprecated,
            hide=hide,
        )
    )
