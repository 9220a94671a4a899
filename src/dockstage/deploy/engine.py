"""Container engine client.

Thin wrapper over the low-level Docker SDK API client. The endpoint is taken
from an explicit :class:`EngineConfig` rather than the process environment so
the workflow can be pointed at any engine. Build and push progress are exposed
as iterators of parsed events; callers drive the stream and decide what to do
with each event.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any

import docker
from docker.errors import DockerException

from dockstage.lib.errors import EngineNotAvailableError
from dockstage.lib.logging_config import get_logger
from dockstage.models.build import BuildOptions, EngineConfig

logger = get_logger(__name__)

SUCCESSFULLY_BUILT = re.compile(r"^Successfully built ([0-9a-f]+)\s*$")


def _error_message(payload: Mapping[str, Any]) -> str | None:
    detail = payload.get("errorDetail")
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    error = payload.get("error")
    return str(error) if error else None


@dataclass(frozen=True)
class BuildEvent:
    """One decoded build progress message.

    Attributes:
        stream: Human-readable log output, if any
        status: Pure status text (pull progress and the like)
        image_id: Image id announced by the engine
        error: Error message for a failed build
    """

    stream: str | None = None
    status: str | None = None
    image_id: str | None = None
    error: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> BuildEvent:
        """Create a BuildEvent from a decoded engine message."""
        stream = payload.get("stream")
        status = payload.get("status")

        image_id = None
        aux = payload.get("aux")
        if isinstance(aux, dict) and aux.get("ID"):
            image_id = str(aux["ID"])
        elif isinstance(stream, str):
            match = SUCCESSFULLY_BUILT.match(stream)
            if match:
                image_id = match.group(1)

        return cls(
            stream=stream if isinstance(stream, str) else None,
            status=status if isinstance(status, str) else None,
            image_id=image_id,
            error=_error_message(payload),
        )


@dataclass(frozen=True)
class PushEvent:
    """One decoded push progress message."""

    status: str | None = None
    progress: str | None = None
    digest: str | None = None
    error: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PushEvent:
        """Create a PushEvent from a decoded engine message."""
        digest = None
        aux = payload.get("aux")
        if isinstance(aux, dict) and aux.get("Digest"):
            digest = str(aux["Digest"])
        return cls(
            status=payload.get("status"),
            progress=payload.get("progress"),
            digest=digest,
            error=_error_message(payload),
        )


class EngineClient:
    """Connection to a container engine.

    Use as a context manager so the connection is closed on every exit path.

    Example:
        >>> with EngineClient(EngineConfig()) as engine:
        ...     for event in engine.build(Path("target/docker"), BuildOptions()):
        ...         print(event.stream)
    """

    def __init__(self, config: EngineConfig) -> None:
        """Open a connection to the configured engine.

        Raises:
            EngineNotAvailableError: If the engine cannot be reached
        """
        self.config = config
        try:
            self.api = docker.APIClient(
                base_url=config.base_url,
                version=config.api_version,
                timeout=config.timeout,
                tls=config.tls_verify,
            )
        except DockerException as e:
            raise EngineNotAvailableError(config.base_url, e) from e
        logger.debug(f"Connected to container engine at {config.base_url}")

    def __enter__(self) -> EngineClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def build(self, context: Path, options: BuildOptions) -> Iterator[BuildEvent]:
        """Start a build and yield its progress events.

        Args:
            context: Build-context directory
            options: Build options passed to the engine

        Yields:
            BuildEvent for every decoded progress message

        Raises:
            docker.errors.DockerException: On transport or API failures
        """
        stream = self.api.build(
            path=str(context),
            rm=True,
            forcerm=options.force_rm,
            nocache=options.no_cache,
            pull=options.pull,
            decode=True,
        )
        for payload in stream:
            yield BuildEvent.from_payload(payload)

    def tag(self, image_id: str, repository: str, tag: str) -> bool:
        """Tag an image; returns the engine's success flag."""
        return bool(self.api.tag(image_id, repository, tag=tag))

    def push(
        self,
        repository: str,
        tag: str,
        auth_config: Mapping[str, str] | None = None,
    ) -> Iterator[PushEvent]:
        """Push one tag of a repository and yield its progress events."""
        stream = self.api.push(
            repository,
            tag=tag,
            stream=True,
            decode=True,
            auth_config=dict(auth_config) if auth_config else None,
        )
        for payload in stream:
            yield PushEvent.from_payload(payload)

    def remove(self, image_id: str, force: bool = True) -> None:
        """Remove an image by id."""
        self.api.remove_image(image_id, force=force)

    def close(self) -> None:
        """Release the engine connection."""
        self.api.close()
