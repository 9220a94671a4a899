"""dockstage command-line entry point."""

from __future__ import annotations

import click

from dockstage import __version__
from dockstage.cli.commands.build import build, stage
from dockstage.cli.commands.init import init


@click.group()
@click.version_option(version=__version__, prog_name="dockstage")
def main() -> None:
    """Stage container build contexts and build, tag, push and remove images."""


main.add_command(build)
main.add_command(stage)
main.add_command(init)


if __name__ == "__main__":  # pragma: no cover
    main()
