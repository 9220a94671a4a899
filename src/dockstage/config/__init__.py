"""Configuration loading and validation for dockstage.

Main components:
- ConfigLoader: Load and validate dockstage.yaml files
- Environment variable substitution (${VAR_NAME} and ${VAR_NAME:-default})
- Default values and the starter configuration template
"""

from dockstage.config.env_loader import get_env_var, substitute_env_vars
from dockstage.config.loader import ConfigLoader, load_build_config

__all__ = [
    "ConfigLoader",
    "get_env_var",
    "load_build_config",
    "substitute_env_vars",
]
