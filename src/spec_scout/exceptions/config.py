"""Configuration exceptions: invalid settings and unsafe combinations."""

from typing import Any

from .base import SpecScoutError


class ConfigurationError(SpecScoutError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class UnsafeConfigurationError(ConfigurationError):
    """Raised when a configuration would let the tool change source unreviewed.

    This is the only fatal condition of the analysis core. It is raised while
    the configuration is built, before any profile is analyzed.
    """

    def __init__(self, reason: str, flags: tuple = ()):
        details = {"reason": reason}
        if flags:
            details["flags"] = ", ".join(flags)
        super().__init__(f"Unsafe configuration: {reason}", details=details)
        self.reason = reason
        self.flags = flags
