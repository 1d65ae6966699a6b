"""schemaroute core - settings and package information.

### Settings (`schemaroute.core.config`)
- `SettingsModel`: documentation metadata, failure status, logging flags
- `load_settings()`: YAML file plus environment overrides

### Version (`schemaroute.core.version`)
- `PACKAGE_NAME`, `PACKAGE_VERSION`, `get_package_info()`
"""

from .config import ServerModel, SettingsModel, get_env_flag, load_settings
from .version import PACKAGE_NAME, PACKAGE_VERSION, get_package_info

__all__ = [
    "PACKAGE_NAME",
    "PACKAGE_VERSION",
    "get_package_info",
    "ServerModel",
    "SettingsModel",
    "load_settings",
    "get_env_flag",
]
