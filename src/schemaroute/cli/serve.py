from pathlib import Path

import click
import uvicorn

from schemaroute.app import create_app, dump_specs
from schemaroute.cli.utils import configure_logging, load_router, run_async_cli
from schemaroute.core.config import load_settings
from schemaroute.errors import DocGenerationError


@click.command(name="serve")
@click.argument("app")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", type=int, default=3000, show_default=True, help="Bind port")
@click.option("--openapi", "openapi_only", is_flag=True, help="Print the OpenAPI document and exit")
@click.option(
    "--config", type=click.Path(dir_okay=False, path_type=Path), help="Settings YAML file"
)
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def serve(
    app: str,
    host: str,
    port: int,
    openapi_only: bool,
    config: Path | None,
    debug: bool,
) -> None:
    """Serve APP, a SchemaRouter given as `module:attribute`.

    \b
    Examples:
        schemaroute serve internal_api:router
        schemaroute serve internal_api:router --port 8080
        schemaroute serve internal_api:router --openapi   # print docs and exit
    """
    try:
        settings = load_settings(config, debug=debug or None)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    configure_logging(debug=settings.debug, log_level=settings.log_level)

    router = load_router(app)
    if openapi_only:
        try:
            click.echo(run_async_cli(dump_specs(router, settings)))
        except DocGenerationError as e:
            raise click.ClickException(f"OpenAPI generation failed: {e}") from e
        return

    application = create_app(router, settings)
    click.echo(f"{click.style('Server ready', fg='green', bold=True)} on http://{host}:{port}")
    click.echo(f"   OpenAPI document: http://{host}:{port}{settings.openapi_path}")
    try:
        uvicorn.run(application, host=host, port=port, log_level=settings.log_level.lower())
    except KeyboardInterrupt:
        click.echo(f"{click.style('Server stopped', fg='cyan')}")
