"""Route registry.

The registry is the explicit record of every route, its pipeline stages and
the shared component schemas. It is filled during application setup and
frozen when the application is built; from then on it is read-only.

The documentation build consumes the registry directly: validation entries
are extracted from the stages at registration time, so no stage is ever
inspected or invoked during discovery.
"""

import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from schemaroute.errors import RegistryFrozenError, SchemaError
from schemaroute.middleware.adapter import DocProvider, ValidationStage
from schemaroute.middleware.context import RequestContext
from schemaroute.middleware.describe import DescribeStage, RouteDescription
from schemaroute.middleware.hooks import Hook, HookResult
from schemaroute.schema.nodes import Schema, is_schema
from schemaroute.validator.compiler import compile_schema
from schemaroute.validator.targets import ValidationTarget

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

Stage = Callable[[RequestContext], Awaitable[HookResult]]
Handler = Callable[[RequestContext], Any]

_COMPONENT_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class RouteValidatorEntry:
    """Discovery record for one validation stage of one route."""

    method: str
    path: str
    target: ValidationTarget
    schema: Schema
    hook: Hook | None
    failure_status: int | None
    doc_provider: DocProvider


@dataclass(frozen=True)
class RouteEntry:
    """A registered route: its pipeline and the metadata extracted from it."""

    method: str
    path: str
    stages: tuple[Stage, ...]
    handler: Handler
    name: str | None
    validators: tuple[RouteValidatorEntry, ...]
    description: RouteDescription | None


@dataclass(frozen=True)
class RouteHandle:
    """Opaque reference to a registered route."""

    index: int
    method: str
    path: str


class RouteRegistry:
    """Append-only record of routes and shared component schemas."""

    def __init__(self) -> None:
        self._routes: list[RouteEntry] = []
        self._keys: set[tuple[str, str]] = set()
        self._components: dict[str, Schema] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> tuple[RouteEntry, ...]:
        return tuple(self._routes)

    @property
    def components(self) -> dict[str, Schema]:
        return dict(self._components)

    @property
    def validator_entries(self) -> tuple[RouteValidatorEntry, ...]:
        return tuple(entry for route in self._routes for entry in route.validators)

    def freeze(self) -> None:
        """Make the registry read-only. Called when serving begins."""
        if not self._frozen:
            logger.info(
                f"Route registry frozen with {len(self._routes)} route(s) "
                f"and {len(self._components)} component(s)"
            )
        self._frozen = True

    def _ensure_open(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Routes cannot be registered after serving has begun")

    def add_route(
        self,
        method: str,
        path: str,
        stages: Sequence[Stage],
        handler: Handler,
        name: str | None = None,
    ) -> RouteHandle:
        """Register a route.

        Args:
            method: HTTP method
            path: Starlette path pattern (e.g. `/users/{id}`)
            stages: Pipeline stages run in order before the handler
            handler: Callable receiving the `RequestContext`
            name: Optional route name

        Returns:
            Handle referencing the new route

        Raises:
            RegistryFrozenError: If the registry is frozen
            ValueError: If the method is unknown, the path is malformed, or
                the method and path are already registered
        """
        self._ensure_open()
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method '{method}'")
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path}")
        if (method, path) in self._keys:
            raise ValueError(f"Route already registered: {method} {path}")
        if not callable(handler):
            raise ValueError(f"Handler for {method} {path} is not callable")

        validators = []
        description = None
        seen_targets: set[ValidationTarget] = set()
        for stage in stages:
            if isinstance(stage, ValidationStage):
                if stage.target in seen_targets:
                    raise ValueError(
                        f"Target '{stage.target.value}' is validated twice on {method} {path}"
                    )
                seen_targets.add(stage.target)
                validators.append(
                    RouteValidatorEntry(
                        method=method,
                        path=path,
                        target=stage.target,
                        schema=stage.schema,
                        hook=stage.hook,
                        failure_status=stage.failure_status,
                        doc_provider=stage.metadata.doc_provider,
                    )
                )
            elif isinstance(stage, DescribeStage):
                description = stage.metadata
            elif not callable(stage):
                raise ValueError(f"Stage {stage!r} on {method} {path} is not callable")

        entry = RouteEntry(
            method=method,
            path=path,
            stages=tuple(stages),
            handler=handler,
            name=name,
            validators=tuple(validators),
            description=description,
        )
        self._routes.append(entry)
        self._keys.add((method, path))
        logger.debug(f"Registered route {method} {path} with {len(validators)} validator(s)")
        return RouteHandle(index=len(self._routes) - 1, method=method, path=path)

    def add_component(self, name: str, schema: Schema) -> None:
        """Register a shared schema documented under `components.schemas`.

        Raises:
            RegistryFrozenError: If the registry is frozen
            SchemaError: If `schema` is not a schema node or is malformed
            ValueError: If the name is invalid or bound to a different schema
        """
        self._ensure_open()
        if not _COMPONENT_NAME_RE.match(name):
            raise ValueError(f"Invalid component name '{name}'")
        if not is_schema(schema):
            raise SchemaError(f"Component '{name}' is not a schema node")
        compile_schema(schema)
        existing = self._components.get(name)
        if existing is not None and existing != schema:
            raise ValueError(f"Component '{name}' is already registered with a different schema")
        self._components[name] = schema

    def get(self, handle: RouteHandle) -> RouteEntry:
        """Return the route referenced by `handle`."""
        return self._routes[handle.index]
