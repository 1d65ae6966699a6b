"""Application settings for schemaroute.

Settings come from three places, lowest priority first:

1. Model defaults
2. A YAML file (`path` argument, or the `SCHEMAROUTE_CONFIG` environment variable)
3. Environment overrides: `SCHEMAROUTE_DEBUG`, `SCHEMAROUTE_LOG_LEVEL`,
   `SCHEMAROUTE_FAILURE_STATUS`, `SCHEMAROUTE_TRACING`

Example `schemaroute.yml`:

```yaml
title: Internal API
version: 1.0.0
servers:
  - url: http://localhost:3000
    description: Local Server
failure_status_code: 422
```
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator

from schemaroute.models import SchemaRouteBaseModel

# No logging in this module as it's used to load the logging config

__all__ = ["ServerModel", "SettingsModel", "load_settings", "get_env_flag"]


def get_env_flag(env_var: str, default: bool = False) -> bool:
    """Get a boolean flag from an environment variable.

    Returns:
        True if the variable is set to "1", "true", or "yes" (case insensitive),
        the default if it is unset
    """
    value = os.environ.get(env_var, "").lower()
    return value in ("1", "true", "yes") if value else default


class ServerModel(SchemaRouteBaseModel):
    """An OpenAPI server entry."""

    url: str
    description: str | None = None


class SettingsModel(SchemaRouteBaseModel):
    """Settings shared by the router, the validators and the documentation build.

    Attributes:
        title: API title in the generated document.
        version: API version in the generated document.
        description: API description in the generated document.
        servers: Server entries in the generated document.
        openapi_path: Path of the documentation endpoint.
        failure_status_code: Status returned when validation fails.
        debug: Enable debug logging.
        log_level: Log level when debug is off.
        tracing: Record OpenTelemetry spans.
    """

    title: str = "API"
    version: str = "1.0.0"
    description: str | None = None
    servers: list[ServerModel] = Field(default_factory=list)
    openapi_path: str = "/openapi"
    failure_status_code: int = 400
    debug: bool = False
    log_level: str = "WARNING"
    tracing: bool = False

    @field_validator("failure_status_code")
    @classmethod
    def _client_error(cls, value: int) -> int:
        if not 400 <= value <= 499:
            raise ValueError("failure_status_code must be a 4xx status")
        return value

    @field_validator("openapi_path")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("openapi_path must start with '/'")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{value}'")
        return value


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if "SCHEMAROUTE_DEBUG" in os.environ:
        overrides["debug"] = get_env_flag("SCHEMAROUTE_DEBUG")
    if "SCHEMAROUTE_TRACING" in os.environ:
        overrides["tracing"] = get_env_flag("SCHEMAROUTE_TRACING")
    if os.environ.get("SCHEMAROUTE_LOG_LEVEL"):
        overrides["log_level"] = os.environ["SCHEMAROUTE_LOG_LEVEL"]
    if os.environ.get("SCHEMAROUTE_FAILURE_STATUS"):
        overrides["failure_status_code"] = os.environ["SCHEMAROUTE_FAILURE_STATUS"]
    return overrides


def load_settings(path: str | Path | None = None, **overrides: Any) -> SettingsModel:
    """Load settings from YAML and the environment.

    Args:
        path: Optional YAML file; defaults to `SCHEMAROUTE_CONFIG` when set
        **overrides: Values that take precedence over file and environment

    Returns:
        Validated settings

    Raises:
        FileNotFoundError: If an explicitly named config file does not exist
        ValueError: If the configuration is invalid
    """
    config_data: dict[str, Any] = {}
    if path is None and os.environ.get("SCHEMAROUTE_CONFIG"):
        path = os.environ["SCHEMAROUTE_CONFIG"]

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"schemaroute config not found at {path}")
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError("schemaroute config must be a mapping")
        config_data.update(loaded)

    config_data.update(_env_overrides())
    config_data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return SettingsModel.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid schemaroute config: {exc}") from exc
