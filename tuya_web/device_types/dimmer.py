"""Dimmer adapter."""

from __future__ import annotations

from ..accessory import AccessoryCategory, Characteristic
from ..config import DeviceType, DimmerConfig
from ..state import FieldSource, PropertySpec, power_spec
from .base import BaseAccessory

BRIGHTNESS_COMMAND = "brightnessSet"


class DimmerAccessory(BaseAccessory):
    """Dimmable light exposing power and brightness."""

    device_type = DeviceType.DIMMER
    category = AccessoryCategory.LIGHTBULB
    config: DimmerConfig

    def build_properties(self) -> list[PropertySpec]:
        """Track power and a brightness reported as percentage or brightness."""

        from_tuya = self.config.from_tuya_brightness
        return [
            power_spec(),
            PropertySpec(
                key="brightness",
                sources=(
                    FieldSource(("percentage",), from_tuya),
                    FieldSource(("brightness",), from_tuya),
                ),
                command=BRIGHTNESS_COMMAND,
                to_device=self.config.to_tuya_brightness,
            ),
        ]

    def register_characteristics(self) -> None:
        """Register the on/off and brightness handlers."""

        super().register_characteristics()
        self.bind(Characteristic.BRIGHTNESS, "brightness")
