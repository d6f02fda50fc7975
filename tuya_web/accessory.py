"""Boundary with the accessory framework.

Adapters only need three things from the framework: a way to register an
asynchronous getter and setter per characteristic, and a way to push a new
value to subscribed observers.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

Getter = Callable[[], Awaitable[Any]]
Setter = Callable[[Any], Awaitable[None]]


class Characteristic(str, Enum):
    """Accessory characteristics handled by the adapters."""

    ON = "On"
    BRIGHTNESS = "Brightness"
    SATURATION = "Saturation"
    HUE = "Hue"
    COLOR_TEMPERATURE = "ColorTemperature"
    CURRENT_POSITION = "CurrentPosition"
    TARGET_POSITION = "TargetPosition"
    POSITION_STATE = "PositionState"


class AccessoryCategory(str, Enum):
    """Framework categories assigned to adapters."""

    SWITCH = "switch"
    OUTLET = "outlet"
    LIGHTBULB = "lightbulb"
    WINDOW_COVERING = "window_covering"


@dataclass(frozen=True, slots=True)
class CharacteristicHandlers:
    """Asynchronous getter/setter pair bound to one characteristic."""

    getter: Getter
    setter: Setter | None = None


class AccessoryService(Protocol):
    """Framework service an adapter registers its handlers on."""

    def register(
        self, characteristic: Characteristic, handlers: CharacteristicHandlers
    ) -> None:
        """Attach ``handlers`` to ``characteristic``."""

    def update_value(self, characteristic: Characteristic, value: Any) -> None:
        """Push ``value`` to observers subscribed to ``characteristic``."""


ServiceFactory = Callable[[str, str, AccessoryCategory], AccessoryService]
