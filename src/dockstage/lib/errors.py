"""Custom exception hierarchy for dockstage configuration and operations."""

from __future__ import annotations


class DockstageError(Exception):
    """Base exception for all dockstage errors.

    All dockstage-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(DockstageError):
    """Exception raised for configuration errors.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class FileNotFoundError(DockstageError):
    """Exception raised when a configuration file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class EngineNotAvailableError(DockstageError):
    """Exception raised when the container engine cannot be reached.

    Attributes:
        base_url: Engine endpoint that was tried
        message: Human-readable error message with resolution guidance
    """

    def __init__(self, base_url: str, original_error: Exception | None = None) -> None:
        """Create an engine connection error.

        Args:
            base_url: The engine endpoint that failed to connect
            original_error: The underlying exception, if any
        """
        self.base_url = base_url
        message = (
            f"Cannot connect to the container engine at {base_url}.\n"
            f"Ensure the Docker daemon is running and the endpoint is correct."
        )
        if original_error:
            message += f"\nOriginal error: {original_error}"
        self.message = message
        super().__init__(message)


class WorkflowError(DockstageError):
    """Base exception for failures in one step of the image workflow.

    Attributes:
        stage: Name of the workflow step that failed
        message: Human-readable error message
    """

    def __init__(self, stage: str, message: str) -> None:
        """Create a workflow error for a given step."""
        self.stage = stage
        self.message = message
        super().__init__(f"{stage} failed: {message}")


class PatternMatchError(WorkflowError):
    """Raised when a pattern scan root is missing or not a directory."""

    def __init__(self, root: str, message: str | None = None) -> None:
        """Create a pattern match error for the given root."""
        self.root = root
        super().__init__("match", message or f"Not a directory: {root}")


class StagingError(WorkflowError):
    """Raised when the build context cannot be populated.

    Attributes:
        path: The file or directory that could not be read or written
    """

    def __init__(self, path: str, message: str) -> None:
        """Create a staging error naming the offending path."""
        self.path = path
        super().__init__("stage", f"{message}: {path}")


class BuildError(WorkflowError):
    """Raised when the engine reports a failed image build.

    Attributes:
        log_lines: Build log lines received before the failure
    """

    def __init__(self, message: str, log_lines: list[str] | None = None) -> None:
        """Create a build error with the log received so far."""
        self.log_lines = log_lines or []
        super().__init__("build", message)


class TagError(WorkflowError):
    """Raised when the engine rejects a tag operation.

    Attributes:
        tag: The tag that failed
    """

    def __init__(self, tag: str, message: str) -> None:
        """Create a tag error naming the tag that failed."""
        self.tag = tag
        super().__init__("tag", f"tag '{tag}': {message}")


class PushError(WorkflowError):
    """Raised when pushing one tag to its registry fails.

    Attributes:
        tag: The tag whose push failed
    """

    def __init__(self, tag: str, message: str) -> None:
        """Create a push error naming the tag that failed."""
        self.tag = tag
        super().__init__("push", f"tag '{tag}': {message}")


class RemovalError(WorkflowError):
    """Raised when the built image cannot be removed.

    Removal is cleanup: callers report this error without failing the run.

    Attributes:
        image_id: Engine-assigned id of the image
    """

    def __init__(self, image_id: str, message: str) -> None:
        """Create a removal error for the given image id."""
        self.image_id = image_id
        super().__init__("remove", f"image {image_id}: {message}")
