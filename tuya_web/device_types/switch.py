"""Switch and outlet adapters."""

from __future__ import annotations

from ..accessory import AccessoryCategory
from ..config import DeviceType
from .base import BaseAccessory


class SwitchAccessory(BaseAccessory):
    """On/off switch exposing only the power characteristic."""

    device_type = DeviceType.SWITCH
    category = AccessoryCategory.SWITCH


class OutletAccessory(SwitchAccessory):
    """Smart plug; behaves exactly like a switch."""

    device_type = DeviceType.OUTLET
    category = AccessoryCategory.OUTLET
