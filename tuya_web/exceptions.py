"""Error types raised by the Tuya Web accessory bridge."""

from __future__ import annotations


class TuyaWebError(Exception):
    """Base class for all bridge errors."""


class ConfigurationError(TuyaWebError, ValueError):
    """Raised when a pipeline or accessory configuration is invalid."""


class RemoteError(TuyaWebError):
    """Raised when the Tuya cloud rejects or fails a request."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Store the optional remote error code alongside the message."""

        super().__init__(message)
        self.code = code


class AuthenticationError(RemoteError):
    """Raised when logging in or refreshing the session fails."""


class RemoteFetchError(RemoteError):
    """Raised when querying device state fails."""


class RemoteSetError(RemoteError):
    """Raised when a control command fails."""


class StateParseError(TuyaWebError, ValueError):
    """Raised when a reported state value cannot be interpreted."""
