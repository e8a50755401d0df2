"""Tests for whisker._errors."""

from pathlib import Path

from whisker._errors import (
    ChannelClosed,
    ConfigError,
    DeliveryError,
    ReadError,
    RenderError,
    SessionError,
    ShellError,
    WatchBackendError,
    WhiskerError,
)


class TestErrorHierarchy:
    """All whisker errors inherit from WhiskerError."""

    def test_whisker_error_is_exception(self) -> None:
        assert issubclass(WhiskerError, Exception)

    def test_catch_all_whisker_errors(self) -> None:
        for error_cls in (
            ConfigError,
            RenderError,
            WatchBackendError,
            DeliveryError,
            SessionError,
            ShellError,
        ):
            assert issubclass(error_cls, WhiskerError)

    def test_channel_closed_is_delivery_error(self) -> None:
        assert issubclass(ChannelClosed, DeliveryError)


class TestReadError:
    """ReadError carries the path and the last cause."""

    def test_attributes(self) -> None:
        cause = FileNotFoundError("gone")
        err = ReadError(Path("notes.md"), cause)
        assert err.path == Path("notes.md")
        assert err.cause is cause
        assert str(err) == "Error reading notes.md: gone"
        assert isinstance(err, WhiskerError)
