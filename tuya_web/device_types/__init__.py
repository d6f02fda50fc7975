"""Accessory adapters for each supported device type."""

from __future__ import annotations

from ..config import DeviceType
from .base import BaseAccessory
from .dimmer import DimmerAccessory
from .light import LightAccessory
from .light_temperature import LightTemperatureAccessory
from .switch import OutletAccessory, SwitchAccessory
from .window_covering import WindowCoveringAccessory

ACCESSORY_CLASSES: dict[DeviceType, type[BaseAccessory]] = {
    DeviceType.SWITCH: SwitchAccessory,
    DeviceType.OUTLET: OutletAccessory,
    DeviceType.DIMMER: DimmerAccessory,
    DeviceType.LIGHT: LightAccessory,
    DeviceType.LIGHT_TEMPERATURE: LightTemperatureAccessory,
    DeviceType.COVER: WindowCoveringAccessory,
}

__all__ = [
    "ACCESSORY_CLASSES",
    "BaseAccessory",
    "DimmerAccessory",
    "LightAccessory",
    "LightTemperatureAccessory",
    "OutletAccessory",
    "SwitchAccessory",
    "WindowCoveringAccessory",
]
