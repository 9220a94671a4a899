"""Build-context staging.

Resolves an ordered list of resource rules into a single staging directory.
Rules are applied in list order and later rules overwrite files written by
earlier ones at the same relative path.

Merge order caveat: the primary resource (the directory holding the
Dockerfile) is added by :func:`with_primary_resource`. With the default
``MergeOrder.PRIMARY_LAST`` it is staged after every configured resource, so
a primary file silently replaces a resource file with the same relative
path. Use ``MergeOrder.PRIMARY_FIRST`` to let resources override the primary
directory instead.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dockstage.deploy.matcher import match_files
from dockstage.lib.errors import PatternMatchError, StagingError
from dockstage.lib.logging_config import get_logger
from dockstage.models.build import MergeOrder, ResourceRule

logger = get_logger(__name__)


@dataclass
class StagingPlanEntry:
    """Files one rule would contribute to the staging directory.

    Attributes:
        rule: The resource rule
        files: Matched paths relative to the rule's directory
        copy_directory: Whether the rule copies its whole directory tree
    """

    rule: ResourceRule
    files: list[str] = field(default_factory=list)
    copy_directory: bool = False

    @property
    def skipped(self) -> bool:
        """Rules that match nothing are not applied."""
        return not self.files


def with_primary_resource(
    rules: Sequence[ResourceRule],
    primary_directory: Path,
    merge_order: MergeOrder = MergeOrder.PRIMARY_LAST,
) -> list[ResourceRule]:
    """Return a new rule list including the primary resource.

    Args:
        rules: Configured resource rules, in order
        primary_directory: Primary build-context directory
        merge_order: Whether the primary rule goes first or last

    Returns:
        New list of rules; the input sequence is left untouched
    """
    primary = ResourceRule(directory=Path(primary_directory))
    if merge_order == MergeOrder.PRIMARY_FIRST:
        return [primary, *rules]
    return [*rules, primary]


def plan_context(rules: Sequence[ResourceRule]) -> list[StagingPlanEntry]:
    """Resolve every rule's patterns without copying anything.

    Raises:
        StagingError: If a rule's source directory is missing
    """
    return [
        StagingPlanEntry(
            rule=rule,
            files=_match_rule(rule),
            copy_directory=rule.copies_whole_directory,
        )
        for rule in rules
    ]


def stage_context(rules: Sequence[ResourceRule], staging_root: Path) -> list[str]:
    """Populate the staging directory from the given rules.

    The staging root is created when missing and reused when present. Partial
    output is left in place on failure; cleaning it up is the caller's job.

    Args:
        rules: Resource rules in staging order (primary rule included)
        staging_root: Directory to populate

    Returns:
        POSIX-style paths written, relative to the staging root, in write order

    Raises:
        StagingError: On a missing source directory or any I/O failure
    """
    staging_root = Path(staging_root)
    try:
        staging_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StagingError(
            str(staging_root), f"Cannot create staging directory ({e})"
        ) from e

    staged: list[str] = []
    for rule in rules:
        files = _match_rule(rule)
        if not files:
            logger.debug(f"No files matched in {rule.directory}, skipping")
            continue

        target_base = staging_root
        if rule.target_path:
            target_base = staging_root / rule.target_path
        prefix = Path(rule.target_path) if rule.target_path else Path()

        if rule.copies_whole_directory:
            logger.debug(f"Copying directory {rule.directory} to {target_base}")
            _copy_tree(rule.directory, target_base)
            staged.extend((prefix / path).as_posix() for path in files)
        else:
            logger.debug(f"Copying {len(files)} file(s) from {rule.directory}")
            for relative in files:
                _copy_file(rule.directory / relative, target_base / relative)
                staged.append((prefix / relative).as_posix())

    logger.info(f"Staged {len(staged)} file(s) into {staging_root}")
    return staged


def _match_rule(rule: ResourceRule) -> list[str]:
    try:
        return match_files(rule.directory, rule.includes, rule.excludes)
    except PatternMatchError as e:
        raise StagingError(str(rule.directory), "Resource directory not found") from e
    except OSError as e:
        raise StagingError(str(rule.directory), f"Cannot scan directory ({e})") from e


def _replace_file(
    source: str | os.PathLike[str], destination: str | os.PathLike[str]
) -> None:
    # Unlink first so read-only destinations from earlier rules are replaced
    destination_path = Path(destination)
    if destination_path.is_symlink() or destination_path.is_file():
        destination_path.unlink()
    shutil.copy2(source, destination_path)


def _copy_file(source: Path, destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        _replace_file(source, destination)
    except OSError as e:
        offending = getattr(e, "filename", None) or source
        reason = e.strerror or e
        raise StagingError(str(offending), f"Failed to copy file ({reason})") from e


def _copy_tree(source: Path, destination: Path) -> None:
    # Directories get default modes; only files keep their attributes
    for current, dirnames, filenames in os.walk(source):
        dirnames.sort()
        target_dir = destination / Path(current).relative_to(source)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            reason = e.strerror or e
            raise StagingError(
                str(target_dir), f"Failed to create directory ({reason})"
            ) from e
        for name in sorted(filenames):
            candidate = Path(current) / name
            if candidate.is_file():
                _copy_file(candidate, target_dir / name)
