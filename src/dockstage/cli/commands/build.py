"""CLI commands for building container images.

Implements 'dockstage build', which stages the build context and runs the
image build/tag/push/remove workflow, and 'dockstage stage', which only
stages the context.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import click

from dockstage.config.defaults import DEFAULT_CONFIG_FILE
from dockstage.config.loader import ConfigLoader
from dockstage.deploy.context import plan_context, stage_context, with_primary_resource
from dockstage.deploy.workflow import WorkflowResult, run_workflow
from dockstage.lib.errors import (
    ConfigError,
    EngineNotAvailableError,
    FileNotFoundError,
    WorkflowError,
)
from dockstage.lib.logging_config import get_logger, setup_logging
from dockstage.models.build import BuildConfig

logger = get_logger(__name__)


@contextmanager
def handle_build_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in build commands.

    Exit codes:
        2: Configuration error
        3: Staging, engine or workflow error
    """
    try:
        yield
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except EngineNotAvailableError as e:
        logger.error(f"Engine not available: {e}")
        click.secho("Error: Container engine is not available", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except WorkflowError as e:
        logger.error(f"Workflow error: {e}")
        click.secho(f"Error: {e.stage} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def _load_config(config_file: str, overrides: dict[str, Any]) -> BuildConfig:
    return ConfigLoader().load_build_config(config_file, overrides)


def _display_plan(config: BuildConfig) -> None:
    rules = with_primary_resource(
        config.resources, config.directory, config.merge_order
    )
    click.secho("Staging plan:", bold=True)
    for index, entry in enumerate(plan_context(rules), start=1):
        target = entry.rule.target_path or "."
        mode = "directory" if entry.copy_directory else "files"
        click.echo(f"  {index}. {entry.rule.directory} -> {target} ({mode})")
        if entry.skipped:
            click.echo("       (no matching files, skipped)")
        for path in entry.files:
            click.echo(f"       {path}")


def _display_configuration(config: BuildConfig) -> None:
    tags = config.image_tags or ["latest"]
    click.echo()
    click.secho("Build Configuration:", bold=True)
    click.echo(f"  Image:     {config.image_name}")
    click.echo(f"  Tags:      {', '.join(tags)}")
    click.echo(f"  Context:   {config.staging_directory}")
    click.echo(f"  Engine:    {config.engine.base_url}")
    click.echo(f"  Push:      {'yes' if config.push else 'no'}")
    click.echo(f"  Remove:    {'yes' if config.remove else 'no'}")
    click.echo()


def _display_build_success(result: WorkflowResult, quiet: bool) -> None:
    identity = result.identity
    if identity is None:
        return

    if quiet:
        for reference in identity.references:
            click.echo(reference)
        return

    click.echo()
    click.secho("=" * 60, fg="green")
    click.secho("  Build Successful!", fg="green", bold=True)
    click.secho("=" * 60, fg="green")
    click.echo()
    click.echo(f"  ID:       {identity.image_id[:19]}...")
    for reference in identity.references:
        click.echo(f"  Image:    {reference}")
    for reference in result.pushed:
        click.echo(f"  Pushed:   {reference}")
    if result.removed:
        click.echo("  Removed:  yes")
    if result.removal_error:
        click.secho(f"  Warning:  {result.removal_error.message}", fg="yellow")
    click.echo()


@click.command()
@click.argument(
    "config_file",
    type=click.Path(),
    default=DEFAULT_CONFIG_FILE,
    required=False,
)
@click.option(
    "--tag",
    "-t",
    "tags",
    multiple=True,
    help="Tag to apply (repeatable, overrides image_tags)",
)
@click.option("--no-cache", is_flag=True, help="Build without using cache")
@click.option("--force-rm", is_flag=True, help="Always remove intermediate containers")
@click.option("--pull", is_flag=True, help="Always pull newer base images")
@click.option("--push", is_flag=True, help="Push every tag after building")
@click.option("--remove", is_flag=True, help="Remove the image after the run")
@click.option("--skip", is_flag=True, help="Skip the build entirely")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show the staging plan without staging or building",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output")
def build(
    config_file: str,
    tags: tuple[str, ...],
    no_cache: bool,
    force_rm: bool,
    pull: bool,
    push: bool,
    remove: bool,
    skip: bool,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Stage the build context and build the container image.

    CONFIG_FILE is the path to the dockstage.yaml configuration file.

    Example:

        dockstage build

        dockstage build dockstage.yaml -t v1.0.0 -t latest --push

        dockstage build --dry-run
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    # Flags only switch options on; unset flags leave the file's value alone
    overrides: dict[str, Any] = {
        "image_tags": list(tags) if tags else None,
        "no_cache": True if no_cache else None,
        "force_rm": True if force_rm else None,
        "pull": True if pull else None,
        "push": True if push else None,
        "remove": True if remove else None,
        "skip": True if skip else None,
    }

    with handle_build_errors():
        config = _load_config(config_file, overrides)

        if config.skip:
            if not quiet:
                click.echo("Skipping image build")
            return

        if not quiet:
            _display_configuration(config)

        if dry_run:
            _display_plan(config)
            click.echo()
            click.secho("[DRY RUN] No image was built", fg="yellow")
            return

        log_sink = _echo_build_line if verbose and not quiet else _log_build_line
        result = run_workflow(config, log_sink=log_sink)
        _display_build_success(result, quiet)


def _echo_build_line(line: str) -> None:
    click.echo(f"  {line}")


def _log_build_line(line: str) -> None:
    logger.info(line)


@click.command()
@click.argument(
    "config_file",
    type=click.Path(),
    default=DEFAULT_CONFIG_FILE,
    required=False,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output")
def stage(config_file: str, verbose: bool, quiet: bool) -> None:
    """Stage the build context without contacting the engine.

    CONFIG_FILE is the path to the dockstage.yaml configuration file.
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_build_errors():
        config = _load_config(config_file, {})
        rules = with_primary_resource(
            config.resources, config.directory, config.merge_order
        )
        staged = stage_context(rules, config.staging_directory)

        if quiet:
            click.echo(str(config.staging_directory))
            return

        click.secho(
            f"Staged {len(staged)} file(s) into {config.staging_directory}",
            fg="green",
        )
