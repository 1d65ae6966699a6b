"""Pipeline stages for schemaroute routes.

## Key Components

- `validator(target, schema, hook=None)`: validation stage for one request part
- `describe_route(...)`: documentation-only stage
- `resolver(schema)`: response schema for documentation and output checks
- `Continue` / `Terminate`: tagged stage and hook results
- `RequestContext`: per-request state; `ctx.valid(target)` returns validated values

## Hooks

```python
from schemaroute.middleware import CONTINUE, Terminate

def on_result(result, ctx):
    if not result.success:
        return Terminate(ctx.json({"message": "Invalid!"}, 422))
    return CONTINUE
```
"""

from .adapter import DiscoveryMetadata, ValidationStage, validator
from .context import MalformedBodyError, RequestContext, multi_to_dict
from .describe import DescribeStage, RouteDescription, SchemaResolver, describe_route, resolver
from .hooks import CONTINUE, Continue, Hook, HookResult, Terminate

__all__ = [
    # Validation
    "validator",
    "ValidationStage",
    "DiscoveryMetadata",
    # Documentation
    "describe_route",
    "DescribeStage",
    "RouteDescription",
    "resolver",
    "SchemaResolver",
    # Hooks
    "CONTINUE",
    "Continue",
    "Terminate",
    "Hook",
    "HookResult",
    # Context
    "RequestContext",
    "MalformedBodyError",
    "multi_to_dict",
]
