"""Pydantic models for image build configuration.

This module defines the configuration schema for a dockstage build: the
resource rules that populate the build context, the engine endpoint, the
build options and the image naming/tagging settings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ENGINE_URL = "unix:///var/run/docker.sock"
DEFAULT_TAG = "latest"
STAGING_SUBDIRECTORY = "docker"

IMAGE_NAME_PATTERN = re.compile(r"\S+")


class MergeOrder(str, Enum):
    """Position of the primary resource among the configured resources.

    PRIMARY_LAST matches the historical behaviour: primary files are staged
    after every configured resource and overwrite them at the same path.
    """

    PRIMARY_LAST = "primary_last"
    PRIMARY_FIRST = "primary_first"


class ResourceRule(BaseModel):
    """A source directory and the patterns selecting files to stage from it.

    Attributes:
        directory: Source directory; patterns are evaluated relative to it
        includes: Glob patterns to include (empty means everything)
        excludes: Glob patterns removed from the included set
        target_path: Sub-path of the staging root to copy into
    """

    model_config = ConfigDict(extra="forbid")

    directory: Path = Field(..., description="Source directory")
    includes: list[str] = Field(default_factory=list, description="Include globs")
    excludes: list[str] = Field(default_factory=list, description="Exclude globs")
    target_path: str | None = Field(
        default=None, description="Target sub-path inside the staging root"
    )

    @field_validator("target_path")
    @classmethod
    def validate_target_path(cls, v: str | None) -> str | None:
        """Reject target paths that would escape the staging root."""
        if v is None:
            return v
        normalized = v.replace("\\", "/")
        path = PurePosixPath(normalized)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError(
                f"Invalid target_path: {v}. Must be relative to the staging root"
            )
        return normalized

    @property
    def copies_whole_directory(self) -> bool:
        """Whether this rule copies its directory tree as-is."""
        return not self.includes and not self.excludes and self.target_path is not None


class BuildOptions(BaseModel):
    """Options passed verbatim to the engine build."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    force_rm: bool = Field(
        default=False, description="Always remove intermediate containers"
    )
    no_cache: bool = Field(default=False, description="Do not use the build cache")
    pull: bool = Field(default=False, description="Always pull newer base images")


class EngineConfig(BaseModel):
    """Container engine endpoint settings.

    Attributes:
        base_url: Engine socket or URL
        tls_verify: Enable TLS for the connection
        api_version: Engine API version, or "auto" to negotiate
        timeout: Per-request timeout in seconds
    """

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(default=DEFAULT_ENGINE_URL, description="Engine endpoint")
    tls_verify: bool = Field(default=False, description="Enable TLS")
    api_version: str = Field(default="auto", description="Engine API version")
    timeout: int = Field(default=60, ge=1, description="Request timeout in seconds")


class RegistryAuth(BaseModel):
    """Registry credentials handed to the engine on push."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., description="Registry user name")
    password: str = Field(..., description="Registry password or token")
    email: str | None = Field(default=None, description="Registry account email")
    serveraddress: str | None = Field(default=None, description="Registry address")

    def to_auth_config(self) -> dict[str, str]:
        """Return the mapping expected by the engine push call."""
        return self.model_dump(exclude_none=True)


class BuildConfig(BaseModel):
    """Top-level dockstage configuration (dockstage.yaml).

    Attributes:
        skip: Skip the whole workflow
        directory: Primary build-context source (usually holds the Dockerfile)
        build_directory: Output root; the context is staged under <root>/docker
        image_name: Repository name applied to every tag
        image_tags: Tags to apply; "latest" when empty
        force_rm: Always remove intermediate containers
        no_cache: Build without cache
        pull: Pull base images before building
        push: Push every tag after tagging
        remove: Force-remove the image at the end of the run
        merge_order: Where the primary resource sits in the staging order
        resources: Additional resources staged alongside the primary one
        engine: Engine endpoint settings
        registry_auth: Optional credentials passed through on push
    """

    model_config = ConfigDict(extra="forbid")

    skip: bool = False
    directory: Path = Field(..., description="Primary build-context directory")
    build_directory: Path = Field(default=Path("target"), description="Output root")
    image_name: str = Field(..., description="Image repository name")
    image_tags: list[str] = Field(default_factory=list, description="Image tags")
    force_rm: bool = False
    no_cache: bool = False
    pull: bool = False
    push: bool = False
    remove: bool = False
    merge_order: MergeOrder = MergeOrder.PRIMARY_LAST
    resources: list[ResourceRule] = Field(default_factory=list)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    registry_auth: RegistryAuth | None = None

    @field_validator("image_name")
    @classmethod
    def validate_image_name(cls, v: str) -> str:
        """Validate that the image name is a single non-empty word."""
        if not IMAGE_NAME_PATTERN.fullmatch(v):
            raise ValueError(
                f"Invalid image name: {v!r}. Must be non-empty without whitespace"
            )
        return v

    @property
    def staging_directory(self) -> Path:
        """Directory the build context is staged into."""
        return self.build_directory / STAGING_SUBDIRECTORY

    def build_options(self) -> BuildOptions:
        """Return the immutable option set for one build."""
        return BuildOptions(
            force_rm=self.force_rm, no_cache=self.no_cache, pull=self.pull
        )


@dataclass
class ImageIdentity:
    """A built image and the tags assigned to it.

    Attributes:
        image_id: Engine-assigned image id
        image_name: Repository name the tags were applied under
        tags: Tags in the order they were applied
        log_lines: Build log lines received from the engine
    """

    image_id: str
    image_name: str | None = None
    tags: list[str] = field(default_factory=list)
    log_lines: list[str] = field(default_factory=list)

    @property
    def references(self) -> list[str]:
        """Full image references (name:tag) in tag order."""
        if not self.image_name:
            return []
        return [f"{self.image_name}:{tag}" for tag in self.tags]
