"""schemaroute validator - compiled schema validation and input normalization.

## Key Components

- `compile_schema` / `CompiledValidator`: compile a schema once, then
  `check(value)` and lazily enumerate `errors(value)`
- `NormalizationPipeline`: clean -> default -> convert -> check for one
  validation target
- `ErrorRecord`, `ValidationSuccess`, `ValidationFailure`: result types
- `ValidationTarget`: which part of the request a schema applies to

## Quick Example

```python
from schemaroute.schema import Type
from schemaroute.validator import NormalizationPipeline, ValidationTarget, compile_schema

schema = Type.object({"id": Type.number()})

validator = compile_schema(schema)
validator.check({"id": 1})           # True
list(validator.errors({"id": "x"}))  # [ErrorRecord(path='id', message='Expected number, got string')]

pipeline = NormalizationPipeline(schema, validator)
pipeline.apply(ValidationTarget.PARAM, {"id": "42", "extra": "x"})
# ValidationSuccess(data={'id': 42})
```
"""

from .compiler import CompiledValidator, compile_schema, describe_type, join_path
from .models import ErrorRecord, ValidationFailure, ValidationResult, ValidationSuccess
from .normalize import NormalizationPipeline, apply_defaults, clean, convert
from .targets import ValidationTarget

__all__ = [
    # Compiler
    "CompiledValidator",
    "compile_schema",
    "describe_type",
    "join_path",
    # Results
    "ErrorRecord",
    "ValidationResult",
    "ValidationSuccess",
    "ValidationFailure",
    # Normalization
    "NormalizationPipeline",
    "clean",
    "apply_defaults",
    "convert",
    # Targets
    "ValidationTarget",
]
