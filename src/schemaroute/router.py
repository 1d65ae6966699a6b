"""Route declaration.

`SchemaRouter` is the public registration surface. Routes are a method, a
path, an ordered list of stages (validators, `describe_route`, plain async
callables) and a handler:

```python
router = SchemaRouter()

@router.post("/users/{id}", validator("param", UserParams), validator("json", CreateUser))
async def create_user(ctx):
    return {"id": ctx.valid("param")["id"], **ctx.valid("json")}
```

Every registration is recorded in the router's `RouteRegistry`, which is
what the application and the documentation build read.
"""

import logging
from collections.abc import Callable

from schemaroute.registry import Handler, RouteHandle, RouteRegistry, Stage
from schemaroute.schema.nodes import Schema

logger = logging.getLogger(__name__)


class SchemaRouter:
    """Collects routes and shared component schemas."""

    def __init__(self, registry: RouteRegistry | None = None):
        self.registry = registry or RouteRegistry()
        self._handles: list[RouteHandle] = []

    @property
    def handles(self) -> tuple[RouteHandle, ...]:
        return tuple(self._handles)

    def add(
        self,
        method: str,
        path: str,
        *stages: Stage,
        handler: Handler,
        name: str | None = None,
    ) -> RouteHandle:
        """Register `handler` for `method` and `path` behind `stages`.

        Raises:
            RegistryFrozenError: If the application has already been built
            ValueError: If the route is invalid or already registered
        """
        handle = self.registry.add_route(method, path, stages, handler, name=name)
        self._handles.append(handle)
        return handle

    def route(
        self, method: str, path: str, *stages: Stage, name: str | None = None
    ) -> Callable[[Handler], Handler]:
        """Decorator form of `add`. The handler is returned unchanged."""

        def decorator(handler: Handler) -> Handler:
            self.add(method, path, *stages, handler=handler, name=name)
            return handler

        return decorator

    def get(self, path: str, *stages: Stage, name: str | None = None):
        return self.route("GET", path, *stages, name=name)

    def post(self, path: str, *stages: Stage, name: str | None = None):
        return self.route("POST", path, *stages, name=name)

    def put(self, path: str, *stages: Stage, name: str | None = None):
        return self.route("PUT", path, *stages, name=name)

    def patch(self, path: str, *stages: Stage, name: str | None = None):
        return self.route("PATCH", path, *stages, name=name)

    def delete(self, path: str, *stages: Stage, name: str | None = None):
        return self.route("DELETE", path, *stages, name=name)

    def component(self, name: str, schema: Schema) -> Schema:
        """Register a shared schema under `components.schemas` and return it."""
        self.registry.add_component(name, schema)
        return schema

    def include(self, prefix: str, router: "SchemaRouter") -> list[RouteHandle]:
        """Register every route and component of `router` under `prefix`.

        Args:
            prefix: Path prefix such as `/v1`; empty for none
            router: Router whose registrations are copied

        Returns:
            Handles of the copied routes
        """
        prefix = prefix.rstrip("/")
        if prefix and not prefix.startswith("/"):
            raise ValueError(f"Route prefix must start with '/': {prefix}")

        for name, schema in router.registry.components.items():
            self.component(name, schema)
        handles = []
        for entry in router.registry.routes:
            path = prefix + entry.path if entry.path != "/" or not prefix else prefix
            handles.append(
                self.add(entry.method, path, *entry.stages, handler=entry.handler, name=entry.name)
            )
        logger.debug(f"Included {len(handles)} route(s) under '{prefix or '/'}'")
        return handles
