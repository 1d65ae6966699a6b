"""Result models for schemaroute validation.

`ErrorRecord` is the unit of validation failure. `ValidationResult` is the
tagged outcome of the normalization pipeline: either a `ValidationSuccess`
carrying the normalized value, or a `ValidationFailure` carrying only the
error list. A failure never carries the raw or partially normalized input.
"""

from dataclasses import dataclass
from typing import Any, Literal, Union

from schemaroute.models import SchemaRouteBaseModel


class ErrorRecord(SchemaRouteBaseModel):
    """A single validation failure.

    Attributes:
        path: Dot-joined property names and array indices leading to the
            failing value (`"tags.1.label"`). Empty for the root value.
        message: Human readable description of the failure.

    Example:
        >>> ErrorRecord(path="name", message="Expected string, got int").model_dump()
        {'path': 'name', 'message': 'Expected string, got int'}
    """

    path: str
    message: str


@dataclass(frozen=True)
class ValidationSuccess:
    data: Any

    @property
    def success(self) -> Literal[True]:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "data": self.data}


@dataclass(frozen=True)
class ValidationFailure:
    errors: tuple[ErrorRecord, ...]

    @property
    def success(self) -> Literal[False]:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Build the failure payload returned to clients."""
        return {"success": False, "errors": [e.model_dump() for e in self.errors]}


ValidationResult = Union[ValidationSuccess, ValidationFailure]
