"""schemaroute - schema-driven request validation and OpenAPI generation for Starlette.

One schema declaration drives both runtime validation of incoming requests
and the generated API documentation, so the two never drift apart.

```python
from schemaroute import SchemaRouter, Type, create_app, validator

router = SchemaRouter()

UserParams = Type.object({"id": Type.number()})

@router.get("/users/{id}", validator("param", UserParams))
async def get_user(ctx):
    return {"id": ctx.valid("param")["id"]}

app = create_app(router)   # GET /openapi serves the document
```
"""

from schemaroute.app import create_app, dump_specs, run, to_response
from schemaroute.core.config import SettingsModel, load_settings
from schemaroute.core.version import PACKAGE_VERSION
from schemaroute.errors import (
    DocGenerationError,
    RegistryFrozenError,
    ResponseValidationError,
    SchemaError,
)
from schemaroute.middleware import (
    CONTINUE,
    Continue,
    RequestContext,
    Terminate,
    describe_route,
    resolver,
    validator,
)
from schemaroute.openapi.aggregator import generate_specs, render_specs
from schemaroute.registry import RouteHandle, RouteRegistry
from schemaroute.router import SchemaRouter
from schemaroute.schema import Type, load_schema, load_schema_from_file, schema_from_dict
from schemaroute.validator import ErrorRecord, ValidationFailure, ValidationSuccess

__version__ = PACKAGE_VERSION

__all__ = [
    # Routing
    "SchemaRouter",
    "RouteRegistry",
    "RouteHandle",
    "create_app",
    "run",
    "dump_specs",
    "to_response",
    # Stages
    "validator",
    "describe_route",
    "resolver",
    "CONTINUE",
    "Continue",
    "Terminate",
    "RequestContext",
    # Schemas
    "Type",
    "schema_from_dict",
    "load_schema",
    "load_schema_from_file",
    # Results
    "ErrorRecord",
    "ValidationSuccess",
    "ValidationFailure",
    # Documentation
    "generate_specs",
    "render_specs",
    # Settings
    "SettingsModel",
    "load_settings",
    # Errors
    "SchemaError",
    "DocGenerationError",
    "ResponseValidationError",
    "RegistryFrozenError",
]
