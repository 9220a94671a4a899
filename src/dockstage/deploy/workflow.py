"""End-to-end image workflow: stage, build, tag, push, remove."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from dockstage.deploy.builder import ImageBuilder, LogSink
from dockstage.deploy.context import stage_context, with_primary_resource
from dockstage.deploy.engine import EngineClient
from dockstage.lib.errors import RemovalError
from dockstage.lib.logging_config import get_logger
from dockstage.models.build import BuildConfig, EngineConfig, ImageIdentity

logger = get_logger(__name__)

EngineFactory = Callable[[EngineConfig], EngineClient]


@dataclass
class WorkflowResult:
    """Outcome of one workflow run.

    Attributes:
        identity: Built and tagged image (None when skipped)
        staged_files: Paths written to the staging directory
        pushed: Image references pushed, in order
        removed: Whether the image was removed
        removal_error: Removal failure, reported but not fatal
        skipped: Whether the run was skipped by configuration
    """

    identity: ImageIdentity | None = None
    staged_files: list[str] = field(default_factory=list)
    pushed: list[str] = field(default_factory=list)
    removed: bool = False
    removal_error: RemovalError | None = None
    skipped: bool = False


def run_workflow(
    config: BuildConfig,
    log_sink: LogSink | None = None,
    engine_factory: EngineFactory = EngineClient,
) -> WorkflowResult:
    """Stage the build context and run the image lifecycle.

    The context is staged before the engine is contacted, so a bad resource
    directory fails without any engine call. The engine connection is closed
    on every exit path. Any error other than a removal failure aborts the
    remaining steps.

    Args:
        config: Validated build configuration
        log_sink: Receives build log lines
        engine_factory: Creates the engine connection from config.engine

    Returns:
        WorkflowResult describing what was done

    Raises:
        StagingError: If the build context cannot be staged
        EngineNotAvailableError: If the engine cannot be reached
        BuildError: If the build fails
        TagError: If a tag is rejected
        PushError: If a push fails
    """
    if config.skip:
        logger.info("Skipping image build")
        return WorkflowResult(skipped=True)

    rules = with_primary_resource(
        config.resources, config.directory, config.merge_order
    )
    staged = stage_context(rules, config.staging_directory)
    result = WorkflowResult(staged_files=staged)

    with engine_factory(config.engine) as engine:
        builder = ImageBuilder(engine, log_sink)

        identity = builder.build(config.staging_directory, config.build_options())
        identity = builder.apply_tags(identity, config.image_tags, config.image_name)
        result.identity = identity

        if config.push:
            auth = None
            if config.registry_auth:
                auth = config.registry_auth.to_auth_config()
            result.pushed = builder.push(identity, auth)

        if config.remove:
            try:
                builder.remove(identity)
                result.removed = True
            except RemovalError as e:
                logger.warning(f"Image removal failed: {e}")
                result.removal_error = e

    return result
