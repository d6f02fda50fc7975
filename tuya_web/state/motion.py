"""Derived motion state for window coverings.

The cloud only reports whether a covering is opening, closing or stopped.
Accessories also need to know whether a stopped covering ended up open or
closed, so ``open`` and ``closed`` are inferred from the previously cached
state at the moment a ``stopped`` observation arrives.
"""

from __future__ import annotations

import math
from enum import IntEnum
from typing import Any

from ..exceptions import StateParseError
from .device_state import DeviceStateManager, FieldSource, PropertySpec, Snapshot

MOTION_KEY = "motion"
START_STOP_COMMAND = "startStop"


class MotionState(IntEnum):
    """Reported and virtual motion states."""

    OPENING = 1
    CLOSING = 2
    STOPPED = 3
    OPEN = 4
    CLOSED = 5


class PositionState(IntEnum):
    """Direction values understood by the accessory framework."""

    DECREASING = 0
    INCREASING = 1
    STOPPED = 2


_POSITIONS = {
    MotionState.OPENING: 100,
    MotionState.OPEN: 100,
    MotionState.CLOSING: 0,
    MotionState.CLOSED: 0,
    MotionState.STOPPED: 50,
}


def next_motion_state(observed: MotionState, previous: MotionState) -> MotionState:
    """Return the derived state for ``observed`` given the previous one."""

    if observed is not MotionState.STOPPED:
        return observed
    if previous in (MotionState.OPENING, MotionState.OPEN):
        return MotionState.OPEN
    if previous in (MotionState.CLOSING, MotionState.CLOSED):
        return MotionState.CLOSED
    return observed


def motion_to_position(state: MotionState) -> int:
    """Map a motion state onto a 0/50/100 position percentage."""

    return _POSITIONS[state]


def motion_to_direction(state: MotionState) -> PositionState:
    """Map a motion state onto the framework's position direction."""

    if state is MotionState.OPENING:
        return PositionState.INCREASING
    if state is MotionState.CLOSING:
        return PositionState.DECREASING
    return PositionState.STOPPED


def position_to_motion(position: float) -> MotionState:
    """Translate a target position into the motion it requests.

    Targets other than 0, 50 and 100 snap to the nearest of the three.
    """

    if position >= 75:
        return MotionState.OPENING
    if position <= 25:
        return MotionState.CLOSING
    return MotionState.STOPPED


def parse_motion(raw: Any) -> MotionState:
    """Parse the ``state`` field reported by the cloud.

    Raises:
        StateParseError: when ``raw`` is not one of the motion state codes.
    """

    try:
        number = float(raw)
    except (TypeError, ValueError) as err:
        raise StateParseError(f"Unknown motion state: {raw!r}") from err
    if not math.isfinite(number) or not number.is_integer():
        raise StateParseError(f"Unknown motion state: {raw!r}")
    try:
        return MotionState(int(number))
    except ValueError as err:
        raise StateParseError(f"Unknown motion state: {raw!r}") from err


_COMMANDS: dict[MotionState, tuple[str, dict[str, Any]]] = {
    MotionState.OPENING: ("turnOnOff", {"value": 1}),
    MotionState.CLOSING: ("turnOnOff", {"value": 0}),
    MotionState.STOPPED: (START_STOP_COMMAND, {"value": 0}),
}


def motion_spec() -> PropertySpec:
    """Return the read-only spec for the reported motion state."""

    return PropertySpec(key=MOTION_KEY, sources=(FieldSource(("state",)),))


class WindowCoveringStateManager(DeviceStateManager):
    """State manager that tracks derived motion for a window covering."""

    def previous_motion(self) -> MotionState:
        """Return the cached motion, or ``stopped`` when nothing is fresh."""

        if self.cache.is_valid(self.device_id) and self.cache.has(
            self.device_id, MOTION_KEY
        ):
            cached = self.cache.read(self.device_id, MOTION_KEY)
            if cached is not None:
                return MotionState(cached)
        return MotionState.STOPPED

    def _transform_snapshot(self, snapshot: Snapshot) -> dict[str, Any]:
        """Derive the motion state before the snapshot replaces the cache.

        Unrecognised motion codes are logged and treated as unreported.
        """

        values = super()._transform_snapshot(snapshot)
        raw = values.get(MOTION_KEY)
        if raw is None:
            return values
        try:
            observed = parse_motion(raw)
        except StateParseError as err:
            self._logger.warning("[UPDATING][%s] %s", self.name, err)
            values[MOTION_KEY] = None
            return values
        values[MOTION_KEY] = next_motion_state(observed, self.previous_motion())
        return values

    async def get_motion(self, use_cache: bool | None = None) -> MotionState:
        """Return the current derived motion state."""

        value = await self.get_state(MOTION_KEY, use_cache)
        if value is None:
            return MotionState.STOPPED
        return MotionState(value)

    async def set_target(self, position: float) -> MotionState:
        """Start moving towards ``position`` and cache the derived state."""

        observed = position_to_motion(position)
        command, payload = _COMMANDS[observed]
        await self.send_command(command, payload, log_key="target")
        derived = next_motion_state(observed, self.previous_motion())
        self._logger.debug(
            "[SET][%s] target: %s (%s)", self.name, position, derived.name.lower()
        )
        self.cache.write(self.device_id, MOTION_KEY, derived)
        return derived
