"""State caching and orchestration helpers."""

from __future__ import annotations

from .cache import DEFAULT_CACHE_TTL, StateCache
from .device_state import (
    CommandGroup,
    DeviceApi,
    DeviceStateManager,
    FieldSource,
    GroupMember,
    PropertySpec,
    parse_power,
    power_spec,
)
from .motion import (
    MotionState,
    PositionState,
    WindowCoveringStateManager,
    motion_to_direction,
    motion_to_position,
    next_motion_state,
    position_to_motion,
)

__all__ = [
    "DEFAULT_CACHE_TTL",
    "CommandGroup",
    "DeviceApi",
    "DeviceStateManager",
    "FieldSource",
    "GroupMember",
    "MotionState",
    "PositionState",
    "PropertySpec",
    "StateCache",
    "WindowCoveringStateManager",
    "motion_to_direction",
    "motion_to_position",
    "next_motion_state",
    "parse_power",
    "position_to_motion",
    "power_spec",
]
