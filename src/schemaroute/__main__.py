import click

from schemaroute.cli.openapi import openapi
from schemaroute.cli.serve import serve


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """schemaroute CLI"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(serve)
cli.add_command(openapi)


if __name__ == "__main__":
    cli()
