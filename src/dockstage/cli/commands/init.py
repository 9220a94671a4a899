"""CLI command for creating a starter dockstage.yaml."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from dockstage.config.defaults import CONFIG_TEMPLATE, DEFAULT_CONFIG_FILE


@click.command()
@click.argument(
    "config_file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CONFIG_FILE,
    required=False,
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(config_file: str, force: bool) -> None:
    """Write a starter dockstage.yaml.

    CONFIG_FILE is where the configuration is written.
    """
    path = Path(config_file)
    if path.exists() and not force:
        click.secho(f"Error: {path} already exists (use --force)", fg="red", err=True)
        sys.exit(2)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    click.secho(f"Created {path}", fg="green")
