"""Whisker configuration.

WhiskerConfig is the central configuration object, frozen after creation.
The core pipeline only ever reads it.
"""

from dataclasses import dataclass

from whisker._errors import ConfigError
from whisker._types import BackendName

_BACKENDS: frozenset[str] = frozenset({"notify", "poll"})


@dataclass(frozen=True, slots=True)
class WhiskerConfig:
    """Configuration for a whisker preview server.

    Attributes:
        filename: File shown at ``/`` (other files are reachable by path).
        host: Bind address.
        port: Bind port.
        stylesheet: Optional URL of a user stylesheet linked from the page shell.
        dark: Render the page shell with a dark color scheme.
        dangerous: Pass raw HTML embedded in markdown through unescaped.
            Unsafe for untrusted files.
        backend: Filesystem watch strategy, ``"notify"`` (OS notifications)
            or ``"poll"`` (periodic stat).
        poll_interval: Seconds between stats for the polling backend.
        heartbeat: Seconds of idleness before a keep-alive frame is sent.
        channel_capacity: Buffered render results per connection.
        verbosity: 0 logs errors only, 1 adds session lifecycle, 2 adds
            every filesystem event.

    """

    filename: str = "README.md"
    host: str = "127.0.0.1"
    port: int = 3000
    stylesheet: str | None = None
    dark: bool = False
    dangerous: bool = False
    backend: BackendName = "notify"
    poll_interval: float = 1.0
    heartbeat: float = 1.0
    channel_capacity: int = 30
    verbosity: int = 0

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            msg = f"Unknown watch backend {self.backend!r} (expected 'notify' or 'poll')"
            raise ConfigError(msg)
        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got {self.poll_interval}"
            raise ConfigError(msg)
        if self.heartbeat <= 0:
            msg = f"heartbeat must be positive, got {self.heartbeat}"
            raise ConfigError(msg)
        if self.channel_capacity < 1:
            msg = f"channel_capacity must be at least 1, got {self.channel_capacity}"
            raise ConfigError(msg)
        if not 0 < self.port < 65536:
            msg = f"port out of range: {self.port}"
            raise ConfigError(msg)

    @property
    def url(self) -> str:
        """Base URL the server is reachable at."""
        return f"http://{self.host}:{self.port}"
