"""Exception types raised by schemaroute.

Normal validation failures are never raised: they are returned as
`ErrorRecord` lists. The exceptions below mark programming or
configuration problems, or failures outside the request path.
"""

from typing import Any


class SchemaError(ValueError):
    """Raised when a schema definition is malformed.

    Schema errors are fatal at compile/registration time and abort startup.
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        if path:
            message = f"{message} (at '{path}')"
        super().__init__(message)


class DocGenerationError(Exception):
    """Raised when a schema has no representation in the documentation dialect.

    Only the documentation build fails; request serving is unaffected.
    """

    pass


class ResponseValidationError(ValueError):
    """Raised by `SchemaResolver.validate` when a value does not match its schema."""

    def __init__(self, errors: list[Any]):
        self.errors = errors
        summary = "; ".join(f"{e.path or '<root>'}: {e.message}" for e in errors[:5])
        super().__init__(f"{len(errors)} validation error(s): {summary}")


class RegistryFrozenError(RuntimeError):
    """Raised when registering routes or components after serving has begun."""

    pass
