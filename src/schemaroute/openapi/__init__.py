"""OpenAPI documentation for schemaroute.

## Key Components

- `convert(schema, components=None)`: schema node to OpenAPI schema object
- `ComponentCollector`: named schemas shared under `components.schemas`

The document builder lives in `schemaroute.openapi.aggregator`
(`generate_specs`, `render_specs`); it depends on the route registry and is
not imported here.
"""

from .converter import REF_PREFIX, ComponentCollector, convert, describes_object

__all__ = [
    "REF_PREFIX",
    "ComponentCollector",
    "convert",
    "describes_object",
]
