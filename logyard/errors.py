class LogyardError(Exception):
    """Base class for every error raised by logyard itself."""


class ConfigError(LogyardError):
    """Invalid or unreadable configuration."""


class StartupError(LogyardError):
    """The process cannot start: home directory, bind or directory creation failed."""


class ResolutionError(LogyardError):
    """A user supplied path could not be turned into an absolute path."""

    def __init__(self, raw: str, reason: str):
        super().__init__(f"cannot resolve {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class RotationError(LogyardError, OSError):
    """A rolling writer could not open its next chunk file."""
