"""Exception types raised by the Intentra hook agent."""
from __future__ import annotations


class IntentraError(Exception):
    """Base class for agent errors."""


class ConfigError(IntentraError):
    """The configuration file exists but could not be read or validated."""


class SessionBufferError(IntentraError):
    """A session buffer or last-scan record could not be read or written.

    Raised when local state integrity is at risk; the hook invocation
    surfaces it instead of silently losing events.
    """


class DeliveryError(IntentraError):
    """A scan or session-end update could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidScanIdError(IntentraError):
    """A scan id is unsafe to use as a file name."""
