"""White-spectrum light adapter."""

from __future__ import annotations

from ..accessory import AccessoryCategory, Characteristic
from ..config import DeviceType, LightTemperatureConfig
from ..state import FieldSource, PropertySpec, power_spec
from .base import BaseAccessory
from .dimmer import BRIGHTNESS_COMMAND

COLOR_TEMPERATURE_COMMAND = "colorTemperatureSet"


class LightTemperatureAccessory(BaseAccessory):
    """Light exposing power, brightness and colour temperature."""

    device_type = DeviceType.LIGHT_TEMPERATURE
    category = AccessoryCategory.LIGHTBULB
    config: LightTemperatureConfig

    def build_properties(self) -> list[PropertySpec]:
        """Track power, brightness and ``color_temp``."""

        return [
            power_spec(),
            PropertySpec(
                key="brightness",
                sources=(
                    FieldSource(("brightness",), self.config.from_tuya_brightness),
                ),
                command=BRIGHTNESS_COMMAND,
                to_device=self.config.to_tuya_brightness,
            ),
            PropertySpec(
                key="color_temperature",
                sources=(
                    FieldSource(("color_temp",), self.config.from_tuya_temperature),
                ),
                command=COLOR_TEMPERATURE_COMMAND,
                to_device=self.config.to_tuya_temperature,
            ),
        ]

    def register_characteristics(self) -> None:
        """Register the on/off, brightness and colour temperature handlers."""

        super().register_characteristics()
        self.bind(Characteristic.BRIGHTNESS, "brightness")
        self.bind(Characteristic.COLOR_TEMPERATURE, "color_temperature")
