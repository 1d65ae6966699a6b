"""OpenAPI document aggregation.

Walks the route registry and builds one OpenAPI 3.1 document from the
discovery metadata recorded for each route. Stages are never invoked.

Per validation target:

- `param` / `query` / `header` / `cookie`: one parameter per object property
  (`in: path | query | header | cookie`)
- `json`: request body `application/json`
- `form`: request body `application/x-www-form-urlencoded` and
  `multipart/form-data`

Routes with validators also document the failure response, which refers to
the shared `ValidationErrorResponse` component.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from schemaroute.core.config import SettingsModel
from schemaroute.errors import DocGenerationError
from schemaroute.middleware.describe import SchemaResolver
from schemaroute.registry import RouteEntry, RouteRegistry
from schemaroute.schema.builders import Type
from schemaroute.schema.nodes import NullableSchema, Schema, is_schema, unwrap
from schemaroute.telemetry import traced_operation
from schemaroute.validator.targets import ValidationTarget

from .converter import ComponentCollector, convert, describes_object

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.1.0"

PARAMETER_LOCATIONS = {
    ValidationTarget.PARAM: "path",
    ValidationTarget.QUERY: "query",
    ValidationTarget.HEADER: "header",
    ValidationTarget.COOKIE: "cookie",
}

FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

VALIDATION_ERROR_SCHEMA = Type.object(
    {
        "success": Type.boolean(description="Always false"),
        "errors": Type.array(
            Type.object(
                {
                    "path": Type.string(description="Dot-separated location of the value"),
                    "message": Type.string(),
                },
                name="ValidationErrorRecord",
            )
        ),
    },
    name="ValidationErrorResponse",
    description="Returned when request validation fails",
)

# Starlette converter suffix: {id:int} -> {id}
_CONVERTER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*):[^}]+\}")


def openapi_path(path: str) -> str:
    """Strip Starlette path converters from a route path."""
    return _CONVERTER_RE.sub(r"{\1}", path)


def _accepts_absence(schema: Schema) -> bool:
    node = schema
    while True:
        if node.has_default or isinstance(node, NullableSchema):
            return True
        stripped = unwrap(node)
        if stripped is node:
            return False
        node = stripped


async def _parameters(route: RouteEntry, components: ComponentCollector) -> list[dict[str, Any]]:
    parameters = []
    for entry in route.validators:
        location = PARAMETER_LOCATIONS.get(entry.target)
        if location is None:
            continue
        node = describes_object(entry.schema)
        if node is None:
            raise DocGenerationError(
                f"{route.method} {route.path}: target '{entry.target.value}' "
                f"requires an object schema"
            )
        required = set(node.required_keys)
        for key, child in node.properties.items():
            parameter: dict[str, Any] = {
                "name": key,
                "in": location,
                "required": location == "path"
                or (key in required and not _accepts_absence(child)),
                "schema": await convert(child, components),
            }
            if child.description:
                parameter["description"] = child.description
            parameters.append(parameter)
    return parameters


async def _request_body(route: RouteEntry, components: ComponentCollector) -> dict | None:
    content: dict[str, Any] = {}
    required = False
    for entry in route.validators:
        if entry.target == ValidationTarget.JSON:
            content["application/json"] = {"schema": await entry.doc_provider(components)}
        elif entry.target == ValidationTarget.FORM:
            doc = await entry.doc_provider(components)
            for media_type in FORM_MEDIA_TYPES:
                content[media_type] = {"schema": doc}
        else:
            continue
        required = required or not _accepts_absence(entry.schema)
    if not content:
        return None
    return {"required": required, "content": content}


async def _response_schema(value: Any, components: ComponentCollector) -> Any:
    if isinstance(value, SchemaResolver):
        return await value.build(components)
    if is_schema(value):
        return await convert(value, components)
    if isinstance(value, Mapping):
        return dict(value)
    raise DocGenerationError(f"Unsupported response schema {type(value).__name__}")


async def _responses(
    route: RouteEntry, components: ComponentCollector, settings: SettingsModel
) -> dict[str, Any]:
    responses: dict[str, Any] = {}
    declared = route.description.responses if route.description else {}
    for status, response in declared.items():
        document = dict(response)
        if "content" in document:
            content = {}
            for media_type, media in document["content"].items():
                media = dict(media)
                if "schema" in media:
                    media["schema"] = await _response_schema(media["schema"], components)
                content[media_type] = media
            document["content"] = content
        document.setdefault("description", "")
        responses[str(status)] = document

    if not any(status.startswith("2") for status in responses):
        responses["200"] = {"description": "Successful response"}

    failure_statuses = {
        str(entry.failure_status or settings.failure_status_code) for entry in route.validators
    }
    for status in failure_statuses:
        if status in responses:
            continue
        responses[status] = {
            "description": "Validation failed",
            "content": {
                "application/json": {
                    "schema": await components.add("ValidationErrorResponse", VALIDATION_ERROR_SCHEMA)
                }
            },
        }
    return {status: responses[status] for status in sorted(responses)}


async def _operation(
    route: RouteEntry, components: ComponentCollector, settings: SettingsModel
) -> dict[str, Any]:
    operation: dict[str, Any] = {}
    description = route.description
    if description is not None:
        if description.tags:
            operation["tags"] = list(description.tags)
        if description.summary:
            operation["summary"] = description.summary
        if description.description:
            operation["description"] = description.description
        if description.operation_id:
            operation["operationId"] = description.operation_id
        if description.deprecated:
            operation["deprecated"] = True

    parameters = await _parameters(route, components)
    if parameters:
        operation["parameters"] = parameters
    request_body = await _request_body(route, components)
    if request_body is not None:
        operation["requestBody"] = request_body
    operation["responses"] = await _responses(route, components, settings)
    return operation


async def generate_specs(registry: RouteRegistry, settings: SettingsModel) -> dict[str, Any]:
    """Build the OpenAPI document for every visible route in `registry`.

    Args:
        registry: Route registry to document
        settings: Supplies title, version, servers and the failure status

    Returns:
        The OpenAPI 3.1 document

    Raises:
        DocGenerationError: If a schema or response cannot be documented
    """
    with traced_operation(
        "schemaroute.openapi.generate",
        attributes={"schemaroute.routes": len(registry.routes)},
    ):
        components = ComponentCollector()
        for name, schema in registry.components.items():
            await components.add(name, schema)

        paths: dict[str, dict[str, Any]] = {}
        for route in registry.routes:
            if route.description is not None and route.description.hide:
                continue
            operation = await _operation(route, components, settings)
            paths.setdefault(openapi_path(route.path), {})[route.method.lower()] = operation

        info: dict[str, Any] = {"title": settings.title, "version": settings.version}
        if settings.description:
            info["description"] = settings.description

        document: dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": info}
        if settings.servers:
            document["servers"] = [server.model_dump(exclude_none=True) for server in settings.servers]
        document["paths"] = paths
        document["components"] = {"schemas": components.schemas()}
        logger.debug(f"Generated OpenAPI document with {len(paths)} path(s)")
        return document


def render_specs(document: dict[str, Any]) -> str:
    """Serialize a document the same way for the endpoint and the offline dump."""
    return json.dumps(document, indent=2, ensure_ascii=False)


def openapi_endpoint(registry: RouteRegistry, settings: SettingsModel):
    """Create the Starlette endpoint serving the generated document.

    The document is rebuilt on each request. A documentation failure answers
    500 and does not affect other routes.
    """

    async def endpoint(request: Request) -> Response:
        try:
            document = await generate_specs(registry, settings)
        except DocGenerationError as e:
            logger.error(f"OpenAPI generation failed: {e}")
            return JSONResponse(
                {"error": "documentation_unavailable", "message": str(e)},
                status_code=500,
            )
        return Response(render_specs(document), media_type="application/json")

    return endpoint
