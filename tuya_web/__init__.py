"""Bridge Tuya Web cloud devices to accessory framework characteristics."""

from __future__ import annotations

from .api import TuyaDevice, TuyaWebApi
from .config import DeviceType, PlatformConfig, parse_accessory_config
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    RemoteError,
    RemoteFetchError,
    RemoteSetError,
    StateParseError,
    TuyaWebError,
)
from .platform import TuyaWebPlatform
from .transformations import apply_transformations, build_pipeline

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DeviceType",
    "PlatformConfig",
    "RemoteError",
    "RemoteFetchError",
    "RemoteSetError",
    "StateParseError",
    "TuyaDevice",
    "TuyaWebApi",
    "TuyaWebError",
    "TuyaWebPlatform",
    "apply_transformations",
    "build_pipeline",
    "parse_accessory_config",
]
