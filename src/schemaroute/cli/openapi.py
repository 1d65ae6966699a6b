from pathlib import Path

import click

from schemaroute.app import dump_specs
from schemaroute.cli.utils import configure_logging, load_router, run_async_cli
from schemaroute.core.config import load_settings
from schemaroute.errors import DocGenerationError


@click.command(name="openapi")
@click.argument("app")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the document to a file",
)
@click.option(
    "--config", type=click.Path(dir_okay=False, path_type=Path), help="Settings YAML file"
)
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def openapi(app: str, output: Path | None, config: Path | None, debug: bool) -> None:
    """Print the OpenAPI document for APP without starting a server.

    \b
    Examples:
        schemaroute openapi internal_api:router
        schemaroute openapi internal_api:router --output openapi.json
    """
    try:
        settings = load_settings(config, debug=debug or None)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    configure_logging(debug=settings.debug, log_level=settings.log_level)

    router = load_router(app)
    try:
        rendered = run_async_cli(dump_specs(router, settings))
    except DocGenerationError as e:
        raise click.ClickException(f"OpenAPI generation failed: {e}") from e

    if output is None:
        click.echo(rendered)
    else:
        output.write_text(rendered, encoding="utf-8")
        click.echo(f"Wrote OpenAPI document to {output}", err=True)
