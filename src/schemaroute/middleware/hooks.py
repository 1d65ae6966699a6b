"""Tagged results returned by pipeline stages and validation hooks.

A stage or hook either lets the pipeline go on (`Continue`) or ends the
request with a response (`Terminate`). Hooks may return either value
directly or as an awaitable. A hook that returns `None` continues.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from starlette.responses import Response

from schemaroute.validator.models import ValidationResult

if TYPE_CHECKING:
    from .context import RequestContext


@dataclass(frozen=True)
class Continue:
    """Proceed with the default behavior."""

    pass


@dataclass(frozen=True)
class Terminate:
    """Stop the pipeline and send `response`."""

    response: Response


HookResult = Union[Continue, Terminate]

CONTINUE = Continue()

Hook = Callable[
    [ValidationResult, "RequestContext"],
    HookResult | None | Awaitable[HookResult | None],
]
