"""Configuration loader for dockstage.

This module provides the ConfigLoader class for loading, parsing and
validating build configuration from YAML files.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from dockstage.config.defaults import ENV_VAR_MAP, TRUTHY_VALUES
from dockstage.config.env_loader import substitute_env_vars
from dockstage.config.validator import flatten_pydantic_errors
from dockstage.lib.errors import ConfigError, FileNotFoundError
from dockstage.lib.logging_config import get_logger
from dockstage.models.build import BuildConfig

logger = get_logger(__name__)


def _get_env_flags(env_vars: Mapping[str, str]) -> dict[str, bool]:
    """Collect boolean options set through DOCKSTAGE_* variables."""
    flags: dict[str, bool] = {}
    for field, env_var_name in ENV_VAR_MAP.items():
        if env_var_name in env_vars:
            flags[field] = env_vars[env_var_name].strip().lower() in TRUTHY_VALUES
    return flags


def _resolve_path(value: Any, base_dir: Path) -> Any:
    if not isinstance(value, str | os.PathLike):
        return value
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


class ConfigLoader:
    """Loads dockstage.yaml files into validated BuildConfig objects.

    Configuration precedence (highest to lowest):
    1. CLI overrides passed to load_build_config
    2. Values in the YAML file
    3. DOCKSTAGE_* environment variables (boolean options only)
    4. Model defaults

    Relative paths (directory, build_directory, resources[].directory) are
    resolved against the directory containing the YAML file.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the loader.

        Args:
            env: Environment to read from instead of os.environ
        """
        self.env = os.environ if env is None else env

    def parse_yaml(self, file_path: str) -> dict[str, Any]:
        """Parse a YAML file with ${VAR} substitution.

        Raises:
            FileNotFoundError: If the file cannot be read
            ConfigError: If YAML parsing or substitution fails
        """
        path = Path(file_path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileNotFoundError(
                file_path,
                f"Configuration file not found at {file_path}. "
                f"Run 'dockstage init' to create one.",
            ) from e

        try:
            content = yaml.safe_load(substitute_env_vars(raw_text, self.env))
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {file_path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "yaml_parse",
                f"Expected a mapping at the top of {file_path}, "
                f"got {type(content).__name__}",
            )
        return content

    def load_build_config(
        self,
        file_path: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> BuildConfig:
        """Load and validate a build configuration.

        Args:
            file_path: Path to dockstage.yaml
            overrides: Values taking precedence over the file (e.g. CLI flags)

        Returns:
            Validated BuildConfig with absolute paths

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If parsing or validation fails
        """
        path = Path(file_path)
        data = self.parse_yaml(file_path)

        merged: dict[str, Any] = {**_get_env_flags(self.env), **data}
        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})

        base_dir = path.resolve().parent
        for key in ("directory", "build_directory"):
            if key in merged:
                merged[key] = _resolve_path(merged[key], base_dir)

        resources = merged.get("resources")
        if isinstance(resources, list):
            merged["resources"] = [
                {**item, "directory": _resolve_path(item["directory"], base_dir)}
                if isinstance(item, dict) and "directory" in item
                else item
                for item in resources
            ]
        # Relative build directories default next to the config file too
        merged.setdefault("build_directory", base_dir / "target")

        try:
            config = BuildConfig(**merged)
        except PydanticValidationError as e:
            error_text = "\n".join(flatten_pydantic_errors(e))
            raise ConfigError(
                "build_validation",
                f"Invalid build configuration in {file_path}:\n{error_text}",
            ) from e

        logger.debug(f"Loaded build configuration from {file_path}")
        return config


def load_build_config(
    file_path: str,
    overrides: Mapping[str, Any] | None = None,
) -> BuildConfig:
    """Load a build configuration with a default ConfigLoader."""
    return ConfigLoader().load_build_config(file_path, overrides)
