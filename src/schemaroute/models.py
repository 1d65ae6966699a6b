"""Base Pydantic models for schemaroute.

This module provides the base model class that all schemaroute Pydantic models
inherit from. It establishes consistent configuration across all models:

- Strict field validation (no extra fields allowed)
- Immutable instances, safe to share between concurrent requests

Example:
    >>> from schemaroute.models import SchemaRouteBaseModel
    >>>
    >>> class Point(SchemaRouteBaseModel):
    ...     x: int
    ...     y: int = 0
    >>>
    >>> Point(x=1).model_dump()
    {'x': 1, 'y': 0}
"""

from pydantic import BaseModel, ConfigDict


class SchemaRouteBaseModel(BaseModel):
    """Base model for all schemaroute Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
