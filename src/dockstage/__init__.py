"""dockstage - stage container build contexts and drive image builds.

dockstage merges resource directories into a single build context using
include/exclude patterns, then builds, tags, pushes and optionally removes
the resulting image through the Docker engine API.

Main features:
- Ant-style include/exclude patterns per resource directory
- Ordered, last-write-wins context staging
- Streaming build logs
- Multiple tags with sequential, fail-fast pushes
"""

from dockstage.config.loader import ConfigLoader
from dockstage.lib.errors import ConfigError, DockstageError, WorkflowError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigLoader",
    "ConfigError",
    "DockstageError",
    "WorkflowError",
]
