"""Per-request context shared by the stages of one route."""

import json
import logging
from collections.abc import Iterable
from typing import Any

from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.responses import JSONResponse

from schemaroute.core.config import SettingsModel
from schemaroute.schema.nodes import MISSING
from schemaroute.validator.targets import ValidationTarget

logger = logging.getLogger(__name__)


class MalformedBodyError(ValueError):
    """Raised when a request body cannot be decoded for its target."""

    pass


def multi_to_dict(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Fold repeated keys into lists, keeping single values as scalars."""
    result: dict[str, Any] = {}
    for key, value in items:
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result


class RequestContext:
    """Holds the request and the values validated for it so far.

    Each request gets its own context; validated values are never shared
    between requests.

    Example:
        ```python
        async def get_user(ctx: RequestContext):
            params = ctx.valid("param")
            return {"id": params["id"]}
        ```
    """

    def __init__(self, request: Request, settings: SettingsModel):
        self.request = request
        self.settings = settings
        self._valid: dict[ValidationTarget, Any] = {}

    def valid(self, target: str | ValidationTarget) -> Any:
        """Return the normalized value validated for `target`.

        Raises:
            LookupError: If no validator for `target` ran on this route
        """
        key = ValidationTarget.parse(target)
        try:
            return self._valid[key]
        except KeyError:
            raise LookupError(f"No validated value for target '{key.value}'") from None

    def set_valid(self, target: ValidationTarget, value: Any) -> None:
        self._valid[target] = value

    def json(self, content: Any, status_code: int = 200) -> JSONResponse:
        """Build a JSON response."""
        return JSONResponse(content, status_code=status_code)

    async def read_target(self, target: ValidationTarget) -> Any:
        """Collect the raw, untrusted value for `target` from the request.

        Returns:
            A dict for every target except `json`, whose value is the decoded
            body, or `MISSING` when the body is empty

        Raises:
            MalformedBodyError: If the body cannot be decoded
        """
        request = self.request
        if target == ValidationTarget.PARAM:
            return dict(request.path_params)
        if target == ValidationTarget.QUERY:
            return multi_to_dict(request.query_params.multi_items())
        if target == ValidationTarget.HEADER:
            return multi_to_dict(request.headers.items())
        if target == ValidationTarget.COOKIE:
            return dict(request.cookies)
        if target == ValidationTarget.FORM:
            try:
                form = await request.form()
            except (MultiPartException, ValueError) as e:
                raise MalformedBodyError(f"Malformed form body: {e}") from e
            return multi_to_dict(form.multi_items())

        body = await request.body()
        if not body:
            return MISSING
        try:
            return json.loads(body)
        except ValueError as e:
            logger.debug(f"Rejecting malformed JSON body: {e}")
            raise MalformedBodyError("Malformed JSON body") from e
