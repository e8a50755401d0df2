"""Whisker error hierarchy.

All whisker-specific errors inherit from WhiskerError for easy catching.
Read and render failures are delivered to the viewer as content; backend and
delivery failures end the owning session.
"""

from __future__ import annotations

from pathlib import Path


class WhiskerError(Exception):
    """Base error for all whisker operations."""


class ConfigError(WhiskerError):
    """Invalid or missing configuration."""


class ReadError(WhiskerError):
    """A file could not be read after every retry attempt.

    Attributes:
        path: The file that was being read.
        cause: The exception raised by the last attempt.

    """

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Error reading {path}: {cause}")


class RenderError(WhiskerError):
    """The markdown renderer could not handle its input."""


class WatchBackendError(WhiskerError):
    """The filesystem watch backend failed. Fatal to the owning session."""


class DeliveryError(WhiskerError):
    """A render result could not be pushed: the consumer is gone."""


class ChannelClosed(DeliveryError):
    """The delivery channel is closed and fully drained."""


class SessionError(WhiskerError):
    """A watch session was used incorrectly."""


class ShellError(WhiskerError):
    """The HTML page shell could not be rendered."""
