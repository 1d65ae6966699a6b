import asyncio
import importlib
import logging
import os
import sys
from collections.abc import Coroutine
from typing import Any, TypeVar

import click

from schemaroute.core.config import get_env_flag
from schemaroute.router import SchemaRouter


def configure_logging(debug: bool = False, log_level: str | None = None) -> None:
    """Configure logging for all modules.

    Args:
        debug: Whether to enable debug logging (overrides log_level if True)
        log_level: Log level string ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    """
    # Check environment variable if debug flag is not set
    if not debug:
        debug = get_env_flag("SCHEMAROUTE_DEBUG")

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicate messages
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    root_logger.addHandler(stream_handler)

    for logger_name in logging.root.manager.loggerDict:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


T = TypeVar("T")


def run_async_cli(coro: Coroutine[Any, Any, T]) -> T:
    """Execute an async CLI implementation from a synchronous entrypoint.

    Args:
        coro: The coroutine to run.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("Cannot run CLI coroutine while an event loop is already running.")


def load_router(spec: str) -> SchemaRouter:
    """Import a router given as `module:attribute`.

    The current directory is put on `sys.path` so local modules resolve the
    way they do for `python -m`.

    Raises:
        click.ClickException: If the module or attribute cannot be loaded, or
            the attribute is not a `SchemaRouter`
    """
    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise click.ClickException(f"APP must be given as 'module:attribute', got '{spec}'")

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.ClickException(f"Could not import module '{module_name}': {e}") from e

    router = getattr(module, attribute, None)
    if router is None:
        raise click.ClickException(f"Module '{module_name}' has no attribute '{attribute}'")
    if not isinstance(router, SchemaRouter):
        raise click.ClickException(
            f"'{spec}' is a {type(router).__name__}, expected a SchemaRouter"
        )
    return router
