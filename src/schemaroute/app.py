"""Starlette application built from a `SchemaRouter`.

`create_app` freezes the router's registry and turns each registration into
a Starlette `Route` that runs the stages in order, then the handler. The
generated OpenAPI document is served at `settings.openapi_path`.

`run` either serves the application with uvicorn or, when `--openapi` is in
argv, prints the document and returns without serving.
"""

import asyncio
import inspect
import logging
import sys
from collections.abc import Sequence
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from schemaroute.core.config import SettingsModel, load_settings
from schemaroute.middleware.context import RequestContext
from schemaroute.middleware.hooks import Terminate
from schemaroute.openapi.aggregator import generate_specs, openapi_endpoint, render_specs
from schemaroute.registry import RouteEntry
from schemaroute.router import SchemaRouter
from schemaroute.telemetry import configure_tracing

logger = logging.getLogger(__name__)

OPENAPI_FLAG = "--openapi"


def to_response(result: Any) -> Response:
    """Turn a handler's return value into a response.

    A `Response` is returned as is, `None` becomes an empty 204, a
    `(content, status)` tuple becomes JSON with that status and anything
    else is serialized as JSON with status 200.
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=204)
    if isinstance(result, tuple) and len(result) == 2 and isinstance(result[1], int):
        content, status = result
        return JSONResponse(content, status_code=status)
    return JSONResponse(result)


def _endpoint(entry: RouteEntry, settings: SettingsModel):
    async def endpoint(request: Request) -> Response:
        ctx = RequestContext(request, settings)
        for stage in entry.stages:
            outcome = await stage(ctx)
            if isinstance(outcome, Terminate):
                return outcome.response
        result = entry.handler(ctx)
        if inspect.isawaitable(result):
            result = await result
        return to_response(result)

    endpoint.__name__ = entry.name or getattr(entry.handler, "__name__", "endpoint")
    return endpoint


def create_app(router: SchemaRouter, settings: SettingsModel | None = None) -> Starlette:
    """Build the Starlette application for `router`.

    The router's registry is frozen; later registrations raise
    `RegistryFrozenError`.

    Args:
        router: Router holding the registrations
        settings: Application settings; loaded with `load_settings()` if omitted

    Returns:
        The Starlette application
    """
    settings = settings or load_settings()
    configure_tracing(settings.tracing)
    registry = router.registry
    registry.freeze()

    routes = [
        Route(
            entry.path,
            _endpoint(entry, settings),
            methods=[entry.method],
            name=entry.name,
        )
        for entry in registry.routes
    ]
    routes.append(
        Route(
            settings.openapi_path,
            openapi_endpoint(registry, settings),
            methods=["GET"],
            include_in_schema=False,
        )
    )

    app = Starlette(debug=settings.debug, routes=routes)
    app.state.registry = registry
    app.state.settings = settings
    logger.info(f"Application built with {len(registry.routes)} route(s)")
    return app


async def dump_specs(router: SchemaRouter, settings: SettingsModel | None = None) -> str:
    """Return the serialized OpenAPI document for `router` without serving."""
    settings = settings or load_settings()
    document = await generate_specs(router.registry, settings)
    return render_specs(document)


def run(
    router: SchemaRouter,
    argv: Sequence[str] | None = None,
    settings: SettingsModel | None = None,
    host: str = "127.0.0.1",
    port: int = 3000,
) -> int:
    """Serve `router`, or print its OpenAPI document when `--openapi` is given.

    Args:
        router: Router to serve
        argv: Command line arguments; defaults to `sys.argv[1:]`
        settings: Application settings
        host: Bind address
        port: Bind port

    Returns:
        Process exit code
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    settings = settings or load_settings()
    if OPENAPI_FLAG in argv:
        print(asyncio.run(dump_specs(router, settings)))
        return 0

    app = create_app(router, settings)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return 0
