"""Environment variable substitution for configuration files."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from dockstage.lib.errors import ConfigError

# ${NAME} or ${NAME:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def get_env_var(
    name: str,
    default: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Return an environment variable value or a default."""
    source = os.environ if env is None else env
    return source.get(name, default)


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ${VAR} and ${VAR:-default} references in text.

    Args:
        text: Raw configuration text
        env: Variables to use instead of os.environ

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default

    Example:
        >>> substitute_env_vars("url: ${HOST:-unix:///var/run/docker.sock}", {})
        'url: unix:///var/run/docker.sock'
    """

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = get_env_var(name, default, env)
        if value is None:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is not set and has no default",
            )
        return value

    return ENV_VAR_PATTERN.sub(_replace, text)
