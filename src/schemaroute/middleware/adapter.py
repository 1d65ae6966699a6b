"""Validation stage: one (target, schema) pair as a pipeline step.

Usage:
    ```python
    router.post(
        "/users/{id}",
        validator("param", Type.object({"id": Type.number()})),
        validator("json", CreateUser),
    )(create_user)
    ```

On success the normalized value is stored in the request context under the
target. On failure the stage ends the request with
`{"success": false, "errors": [...]}` and a 4xx status, unless a hook
returns `Terminate` first.

Each stage also carries `DiscoveryMetadata` that the router records in the
route registry. The documentation build reads that metadata and never calls
the stage itself.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse

from schemaroute.errors import SchemaError
from schemaroute.openapi.converter import ComponentCollector, convert, describes_object
from schemaroute.schema.nodes import Schema
from schemaroute.telemetry import traced_operation
from schemaroute.validator.compiler import CompiledValidator, compile_schema
from schemaroute.validator.models import ErrorRecord, ValidationFailure, ValidationResult
from schemaroute.validator.normalize import NormalizationPipeline
from schemaroute.validator.targets import ValidationTarget

from .context import MalformedBodyError, RequestContext
from .hooks import CONTINUE, Continue, Hook, HookResult, Terminate

logger = logging.getLogger(__name__)

DocProvider = Callable[[ComponentCollector | None], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class DiscoveryMetadata:
    """What the documentation build needs to know about a validation stage.

    Attributes:
        target: Request part the stage validates.
        schema: Schema applied to that part.
        doc_provider: Coroutine function producing the documentation node.
    """

    target: ValidationTarget
    schema: Schema
    doc_provider: DocProvider


class ValidationStage:
    """Pipeline stage validating one request target against one schema.

    The schema is compiled when the stage is created, so a malformed schema
    fails at route registration rather than on the first request.
    """

    def __init__(
        self,
        target: ValidationTarget,
        schema: Schema,
        hook: Hook | None = None,
        failure_status: int | None = None,
    ):
        self.target = target
        self.schema = schema
        self.hook = hook
        self.failure_status = failure_status
        self.validator: CompiledValidator = compile_schema(schema)
        self.pipeline = NormalizationPipeline(schema, self.validator)

        async def doc_provider(components: ComponentCollector | None = None) -> dict[str, Any]:
            return await convert(schema, components)

        self.metadata = DiscoveryMetadata(target=target, schema=schema, doc_provider=doc_provider)

    def __repr__(self) -> str:
        return f"ValidationStage(target={self.target.value!r})"

    async def validate(self, ctx: RequestContext) -> ValidationResult:
        """Read the target from the request and run the normalization pipeline."""
        try:
            raw = await ctx.read_target(self.target)
        except MalformedBodyError as e:
            return ValidationFailure(errors=(ErrorRecord(path="", message=str(e)),))
        return self.pipeline.apply(self.target, raw)

    async def __call__(self, ctx: RequestContext) -> HookResult:
        with traced_operation(
            "schemaroute.validate",
            attributes={
                "schemaroute.target": self.target.value,
                "schemaroute.path": ctx.request.url.path,
            },
        ) as span:
            result = await self.validate(ctx)
            span.set_attribute("schemaroute.valid", result.success)

        if self.hook is not None:
            outcome = await self._run_hook(result, ctx)
            if isinstance(outcome, Terminate):
                logger.debug(f"Hook terminated request for target '{self.target.value}'")
                return outcome

        if result.success:
            ctx.set_valid(self.target, result.data)
            return CONTINUE

        status = self.failure_status or ctx.settings.failure_status_code
        logger.debug(
            f"Rejecting request to {ctx.request.url.path}: "
            f"{len(result.errors)} error(s) in target '{self.target.value}'"
        )
        return Terminate(JSONResponse(result.to_dict(), status_code=status))

    async def _run_hook(self, result: ValidationResult, ctx: RequestContext) -> HookResult:
        assert self.hook is not None
        outcome = self.hook(result, ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome is None:
            return CONTINUE
        if not isinstance(outcome, Continue | Terminate):
            raise TypeError(
                "Validation hook must return Continue, Terminate or None, "
                f"got {type(outcome).__name__}"
            )
        return outcome


def validator(
    target: str | ValidationTarget,
    schema: Schema,
    hook: Hook | None = None,
    *,
    failure_status: int | None = None,
) -> ValidationStage:
    """Create a validation stage for `target`.

    Args:
        target: Request part to validate (`param`, `query`, `header`,
            `cookie`, `json` or `form`)
        schema: Schema the normalized value must satisfy
        hook: Optional callable receiving the validation result and the
            request context; returns `Continue`, `Terminate` or `None`,
            directly or as an awaitable
        failure_status: Status for the default failure response; defaults
            to the application's `failure_status_code`

    Returns:
        The stage, ready to be passed to a router registration

    Raises:
        ValueError: If `target` is unknown or `failure_status` is not 4xx
        SchemaError: If the schema is malformed, or is not an object schema
            for a target other than `json`
    """
    if failure_status is not None and not 400 <= failure_status <= 499:
        raise ValueError(f"failure_status must be a 4xx status, got {failure_status}")
    parsed = ValidationTarget.parse(target)
    if parsed != ValidationTarget.JSON and describes_object(schema) is None:
        raise SchemaError(f"Target '{parsed.value}' requires an object schema")
    return ValidationStage(parsed, schema, hook, failure_status)
