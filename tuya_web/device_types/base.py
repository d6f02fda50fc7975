"""Shared accessory adapter plumbing."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from ..accessory import (
    AccessoryCategory,
    AccessoryService,
    Characteristic,
    CharacteristicHandlers,
)
from ..api import TuyaDevice
from ..config import (
    CONFIG_MODELS,
    AccessoryConfig,
    DeviceType,
    parse_accessory_config,
)
from ..exceptions import ConfigurationError
from ..state import (
    CommandGroup,
    DeviceApi,
    DeviceStateManager,
    PropertySpec,
    StateCache,
    power_spec,
)

_LOGGER = logging.getLogger(__name__)


class BaseAccessory:
    """Bind a device's properties to framework characteristics.

    Subclasses describe their properties and characteristics; the base class
    owns the state manager and routes pushed updates to the framework.
    """

    device_type: ClassVar[DeviceType] = DeviceType.SWITCH
    category: ClassVar[AccessoryCategory] = AccessoryCategory.SWITCH
    manager_class: ClassVar[type[DeviceStateManager]] = DeviceStateManager

    def __init__(
        self,
        *,
        device: TuyaDevice,
        api: DeviceApi,
        service: AccessoryService,
        cache: StateCache,
        config: AccessoryConfig | Mapping[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Validate options, build the state manager and register handlers."""

        self.device = device
        self.service = service
        self.config = self._resolve_config(config)
        self._logger = (logger or _LOGGER).getChild(device.id)
        self._characteristics: dict[str, Characteristic] = {}
        self.state = self.manager_class(
            device_id=device.id,
            api=api,
            cache=cache,
            properties=self.build_properties(),
            groups=self.build_groups(),
            use_cache=self.config.use_cache,
            name=device.name,
            on_update=self.on_property_update,
            logger=self._logger,
        )
        self.register_characteristics()

    @property
    def device_id(self) -> str:
        """Return the cloud identifier of the device."""

        return self.device.id

    @property
    def name(self) -> str:
        """Return the display name of the device."""

        return self.device.name

    def _resolve_config(
        self, config: AccessoryConfig | Mapping[str, Any] | None
    ) -> AccessoryConfig:
        expected = CONFIG_MODELS[self.device_type]
        if isinstance(config, AccessoryConfig):
            if not isinstance(config, expected):
                raise ConfigurationError(
                    f"{type(self).__name__} expects {expected.__name__}, "
                    f"got {type(config).__name__}"
                )
            return config
        return parse_accessory_config(self.device_type, config)

    def build_properties(self) -> list[PropertySpec]:
        """Return the properties tracked for this device."""

        return [power_spec()]

    def build_groups(self) -> list[CommandGroup]:
        """Return the grouped commands used by this device."""

        return []

    def register_characteristics(self) -> None:
        """Register getter/setter pairs on the framework service."""

        self.bind(Characteristic.ON, "power")

    def bind(
        self, characteristic: Characteristic, key: str, *, writable: bool = True
    ) -> None:
        """Expose property ``key`` as ``characteristic``."""

        self._characteristics[key] = characteristic

        async def _get() -> Any:
            return await self.state.get_state(key)

        async def _set(value: Any) -> None:
            await self.state.set_state(key, value)

        self.service.register(
            characteristic, CharacteristicHandlers(_get, _set if writable else None)
        )

    def on_property_update(self, key: str, value: Any) -> None:
        """Push a changed property value to the framework."""

        characteristic = self._characteristics.get(key)
        if characteristic is not None:
            self.service.update_value(characteristic, value)

    def update_state(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a pushed state snapshot for this device."""

        return self.state.update_state(data)
