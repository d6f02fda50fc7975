"""Colour light adapter.

Brightness is written on its own with ``brightnessSet``, while saturation
and hue can only be written together through ``colorSet``. Each of the
three is cached independently: setting hue only records hue.
"""

from __future__ import annotations

from ..accessory import AccessoryCategory, Characteristic
from ..config import DeviceType, LightConfig
from ..state import (
    CommandGroup,
    FieldSource,
    GroupMember,
    PropertySpec,
    power_spec,
)
from .base import BaseAccessory
from .dimmer import BRIGHTNESS_COMMAND

COLOR_COMMAND = "colorSet"
COLOR_BLOCK = "color"

# Values sent for colour fields the device has never reported.
DEFAULT_BRIGHTNESS = 100
DEFAULT_SATURATION = 100
DEFAULT_HUE = 359


class LightAccessory(BaseAccessory):
    """Colour light exposing power, brightness, saturation and hue."""

    device_type = DeviceType.LIGHT
    category = AccessoryCategory.LIGHTBULB
    config: LightConfig

    def build_properties(self) -> list[PropertySpec]:
        """Track power and the three colour components."""

        config = self.config
        return [
            power_spec(),
            PropertySpec(
                key="brightness",
                sources=(
                    FieldSource(
                        (COLOR_BLOCK, "brightness"), config.from_tuya_color_brightness
                    ),
                    FieldSource(("brightness",), config.from_tuya_brightness),
                ),
                command=BRIGHTNESS_COMMAND,
                to_device=config.to_tuya_brightness,
            ),
            PropertySpec(
                key="saturation",
                sources=(
                    FieldSource(
                        (COLOR_BLOCK, "saturation"), config.from_tuya_saturation
                    ),
                ),
                group=COLOR_BLOCK,
            ),
            PropertySpec(
                key="hue",
                sources=(FieldSource((COLOR_BLOCK, "hue"), config.from_tuya_hue),),
                group=COLOR_BLOCK,
            ),
        ]

    def build_groups(self) -> list[CommandGroup]:
        """Return the ``colorSet`` command carrying all three components."""

        config = self.config
        return [
            CommandGroup(
                command=COLOR_COMMAND,
                block=COLOR_BLOCK,
                members=(
                    GroupMember(
                        "brightness",
                        "brightness",
                        config.to_tuya_color_brightness,
                        DEFAULT_BRIGHTNESS,
                    ),
                    GroupMember(
                        "saturation",
                        "saturation",
                        config.to_tuya_saturation,
                        DEFAULT_SATURATION,
                    ),
                    GroupMember("hue", "hue", config.to_tuya_hue, DEFAULT_HUE),
                ),
            )
        ]

    def register_characteristics(self) -> None:
        """Register power and colour handlers."""

        super().register_characteristics()
        self.bind(Characteristic.BRIGHTNESS, "brightness")
        self.bind(Characteristic.SATURATION, "saturation")
        self.bind(Characteristic.HUE, "hue")
