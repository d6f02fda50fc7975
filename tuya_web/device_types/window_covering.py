"""Window covering adapter."""

from __future__ import annotations

from typing import Any

from ..accessory import AccessoryCategory, Characteristic, CharacteristicHandlers
from ..config import DeviceType, WindowCoveringConfig
from ..state import (
    MotionState,
    PropertySpec,
    WindowCoveringStateManager,
    motion_to_direction,
    motion_to_position,
)
from ..state.motion import MOTION_KEY, motion_spec
from .base import BaseAccessory


class WindowCoveringAccessory(BaseAccessory):
    """Covering that can only be fully opened, fully closed or stopped.

    Positions are limited to 0, 50 (stopped part-way) and 100.
    """

    device_type = DeviceType.COVER
    category = AccessoryCategory.WINDOW_COVERING
    manager_class = WindowCoveringStateManager
    config: WindowCoveringConfig
    state: WindowCoveringStateManager

    def build_properties(self) -> list[PropertySpec]:
        """Track the reported motion state only."""

        return [motion_spec()]

    def register_characteristics(self) -> None:
        """Register position, target and direction handlers."""

        self.service.register(
            Characteristic.TARGET_POSITION,
            CharacteristicHandlers(self.get_position, self.set_target_position),
        )
        self.service.register(
            Characteristic.CURRENT_POSITION, CharacteristicHandlers(self.get_position)
        )
        self.service.register(
            Characteristic.POSITION_STATE, CharacteristicHandlers(self.get_direction)
        )

    async def get_position(self) -> int:
        """Return the position implied by the current motion state."""

        return motion_to_position(await self.state.get_motion())

    async def get_direction(self) -> int:
        """Return the direction the covering is moving in."""

        return int(motion_to_direction(await self.state.get_motion()))

    async def set_target_position(self, position: Any) -> None:
        """Open, close or stop the covering."""

        await self.state.set_target(float(position))

    def on_property_update(self, key: str, value: Any) -> None:
        """Push position and direction for a changed motion state."""

        if key != MOTION_KEY:
            return
        state = MotionState(value)
        position = motion_to_position(state)
        self.service.update_value(
            Characteristic.POSITION_STATE, int(motion_to_direction(state))
        )
        self.service.update_value(Characteristic.CURRENT_POSITION, position)
        self.service.update_value(Characteristic.TARGET_POSITION, position)
