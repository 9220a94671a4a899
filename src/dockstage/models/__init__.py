"""Configuration and result models for dockstage."""

from dockstage.models.build import (
    BuildConfig,
    BuildOptions,
    EngineConfig,
    ImageIdentity,
    MergeOrder,
    RegistryAuth,
    ResourceRule,
)

__all__ = [
    "BuildConfig",
    "BuildOptions",
    "EngineConfig",
    "ImageIdentity",
    "MergeOrder",
    "RegistryAuth",
    "ResourceRule",
]
