"""Container image build, tag, push and removal.

This module drives one image through its lifecycle on an engine connection:
build from a staged context, apply tags, push each tag and optionally remove
the image again. Every step blocks until the engine acknowledges completion.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from docker.errors import DockerException
from requests.exceptions import RequestException

from dockstage.deploy.engine import EngineClient
from dockstage.lib.errors import BuildError, PushError, RemovalError, TagError
from dockstage.lib.logging_config import get_logger
from dockstage.models.build import DEFAULT_TAG, BuildOptions, ImageIdentity

logger = get_logger(__name__)

LogSink = Callable[[str], None]

# Streaming calls surface transport failures as requests errors
ENGINE_ERRORS = (DockerException, RequestException)


def _log_to_logger(line: str) -> None:
    logger.info(line)


def resolve_tags(requested_tags: Sequence[str]) -> list[str]:
    """Return the tags to apply, defaulting to "latest".

    Example:
        >>> resolve_tags([])
        ['latest']
        >>> resolve_tags(["v1", "v2"])
        ['v1', 'v2']
    """
    return list(requested_tags) if requested_tags else [DEFAULT_TAG]


class ImageBuilder:
    """Builds, tags, pushes and removes images on an engine connection.

    Example:
        >>> with EngineClient(EngineConfig()) as engine:
        ...     builder = ImageBuilder(engine)
        ...     identity = builder.build(Path("target/docker"), BuildOptions())
        ...     identity = builder.apply_tags(identity, ["v1"], "my-org/app")
        ...     builder.push(identity)
    """

    def __init__(self, engine: EngineClient, log_sink: LogSink | None = None) -> None:
        """Initialize the builder.

        Args:
            engine: Open engine connection
            log_sink: Receives each build log line; defaults to the module logger
        """
        self.engine = engine
        self.log_sink = log_sink or _log_to_logger

    def build(self, staging_root: Path, options: BuildOptions) -> ImageIdentity:
        """Build an image from the staged context.

        Build log lines are forwarded to the log sink as they arrive, with
        trailing whitespace removed. Status-only events are not forwarded.

        Args:
            staging_root: Directory used as build context
            options: Build options passed verbatim to the engine

        Returns:
            ImageIdentity carrying the engine-assigned id and no tags yet

        Raises:
            BuildError: If the engine reports a failure or no image id
        """
        logger.info("Building image ...")
        log_lines: list[str] = []
        image_id: str | None = None

        try:
            for event in self.engine.build(Path(staging_root), options):
                if event.stream is not None:
                    line = event.stream.rstrip()
                    log_lines.append(line)
                    self.log_sink(line)
                if event.error:
                    raise BuildError(event.error, log_lines)
                if event.image_id:
                    image_id = event.image_id
        except ENGINE_ERRORS as e:
            raise BuildError(f"Engine error during build: {e}", log_lines) from e

        if not image_id:
            raise BuildError("Build finished without reporting an image id", log_lines)

        logger.debug(f"Built image {image_id}")
        return ImageIdentity(image_id=image_id, log_lines=log_lines)

    def apply_tags(
        self,
        identity: ImageIdentity,
        requested_tags: Sequence[str],
        image_name: str,
    ) -> ImageIdentity:
        """Tag the built image under image_name.

        Every tag is applied in the given order; "latest" is used when no tags
        are requested. A rejected tag does not stop the remaining tag
        operations, but the step fails once all of them have been attempted.

        Returns:
            A copy of identity with image_name and tags set

        Raises:
            TagError: For the first tag the engine rejected
            ValueError: If tags were already applied to this identity
        """
        if identity.tags:
            raise ValueError(f"Tags already applied to image {identity.image_id}")

        tags = resolve_tags(requested_tags)
        failures: list[TagError] = []
        for tag in tags:
            logger.debug(f"Tagging {identity.image_id} as {image_name}:{tag}")
            try:
                accepted = self.engine.tag(identity.image_id, image_name, tag)
            except ENGINE_ERRORS as e:
                error = TagError(tag, str(e))
                error.__cause__ = e
                failures.append(error)
                continue
            if not accepted:
                failures.append(TagError(tag, "rejected by the engine"))

        if failures:
            for failure in failures[1:]:
                logger.error(str(failure))
            raise failures[0]

        return replace(identity, image_name=image_name, tags=tags)

    def push(
        self,
        identity: ImageIdentity,
        auth_config: Mapping[str, str] | None = None,
    ) -> list[str]:
        """Push every tag of the image, one after the other.

        Each push is awaited before the next starts. The first failure stops
        the loop; later tags are not attempted.

        Args:
            identity: Tagged image
            auth_config: Registry credentials passed through to the engine

        Returns:
            Image references pushed, in order

        Raises:
            PushError: Naming the tag whose push failed
        """
        if not identity.image_name:
            raise ValueError(f"Image {identity.image_id} has not been tagged")

        logger.info("Pushing image ...")
        pushed: list[str] = []
        for tag in identity.tags:
            reference = f"{identity.image_name}:{tag}"
            logger.debug(f"Pushing {reference}")
            try:
                for event in self.engine.push(identity.image_name, tag, auth_config):
                    if event.error:
                        raise PushError(tag, event.error)
            except ENGINE_ERRORS as e:
                raise PushError(tag, str(e)) from e
            pushed.append(reference)
        return pushed

    def remove(self, identity: ImageIdentity) -> None:
        """Force-remove the image by id.

        Raises:
            RemovalError: If the engine refuses the removal
        """
        logger.info("Removing image ...")
        try:
            self.engine.remove(identity.image_id, force=True)
        except ENGINE_ERRORS as e:
            raise RemovalError(identity.image_id, str(e)) from e
