"""Platform that discovers Tuya devices and owns their accessories."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from typing import Any

from .accessory import ServiceFactory
from .api import TuyaDevice, TuyaWebApi
from .config import DeviceType, PlatformConfig
from .device_types import ACCESSORY_CLASSES, BaseAccessory
from .exceptions import ConfigurationError
from .state import StateCache

_LOGGER = logging.getLogger(__name__)


def resolve_device_type(device: TuyaDevice) -> DeviceType | None:
    """Pick the adapter type for a discovered device.

    Lights are refined by the fields they report: a colour block means a
    colour light, ``color_temp`` a white-spectrum light, anything else a
    dimmer.
    """

    dev_type = device.dev_type.lower()
    if dev_type == DeviceType.LIGHT.value:
        if "color" in device.data or device.data.get("color_mode") == "colour":
            return DeviceType.LIGHT
        if "color_temp" in device.data:
            return DeviceType.LIGHT_TEMPERATURE
        return DeviceType.DIMMER
    try:
        return DeviceType(dev_type)
    except ValueError:
        return None


class TuyaWebPlatform:
    """Materialise accessories and route polled or pushed state to them."""

    def __init__(
        self,
        *,
        config: PlatformConfig,
        api: TuyaWebApi,
        service_factory: ServiceFactory,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        """Bind the validated configuration, API client and framework."""

        self.config = config
        self._api = api
        self._service_factory = service_factory
        self._loop = loop
        self._logger = logger or _LOGGER
        self._monotonic = monotonic
        self._refresh_task: asyncio.TimerHandle | None = None
        self._pending_tasks: set[asyncio.Task[Any]] = set()
        self.accessories: dict[str, BaseAccessory] = {}

    def _create_accessory(self, device: TuyaDevice) -> BaseAccessory | None:
        defaults = self.config.defaults_for(device.id, device.name)
        device_type = (
            defaults.device_type
            if defaults is not None and defaults.device_type is not None
            else resolve_device_type(device)
        )
        if device_type is None:
            self._logger.warning(
                "Ignoring %s (%s): unsupported device type %r",
                device.name,
                device.id,
                device.dev_type,
            )
            return None

        accessory_class = ACCESSORY_CLASSES[device_type]
        service = self._service_factory(
            device.id, device.name, accessory_class.category
        )
        cache = StateCache(self.config.cache_ttl, monotonic=self._monotonic)
        return accessory_class(
            device=device,
            api=self._api,
            service=service,
            cache=cache,
            config=defaults.config if defaults is not None else None,
            logger=self._logger,
        )

    async def async_discover_devices(self) -> list[BaseAccessory]:
        """Discover devices and create accessories for new ones.

        Raises:
            ConfigurationError: when a device override is invalid for the
                resolved device type.
        """

        devices = await self._api.discover_devices()
        created: list[BaseAccessory] = []
        for device in devices:
            if device.id in self.accessories:
                continue
            try:
                accessory = self._create_accessory(device)
            except ConfigurationError:
                self._logger.error("Invalid configuration for %s", device.name)
                raise
            if accessory is None:
                continue
            self.accessories[device.id] = accessory
            created.append(accessory)
            if device.data:
                accessory.update_state(device.data)
        self._logger.debug("Discovered %d new accessories", len(created))
        return created

    def dispatch_update(
        self, device_id: str, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Route a pushed state snapshot to the matching accessory."""

        accessory = self.accessories.get(device_id)
        if accessory is None:
            self._logger.debug("Ignoring update for unknown device %s", device_id)
            return {}
        return accessory.update_state(data)

    async def async_refresh(self) -> None:
        """Poll every device through discovery and dispatch its state.

        A device whose snapshot cannot be applied is logged and skipped so the
        remaining devices still receive their update.
        """

        devices = await self._api.discover_devices()
        for device in devices:
            if not device.data:
                continue
            try:
                self.dispatch_update(device.id, device.data)
            except Exception as err:
                self._logger.error(
                    "Refreshing %s (%s) failed: %s", device.name, device.id, err
                )

    def async_schedule_refresh(
        self, callback: Callable[[], Awaitable[Any] | None] | None = None
    ) -> asyncio.TimerHandle | None:
        """Schedule recurring refreshes at the configured polling interval."""

        interval = self.config.polling_interval
        if interval is None:
            return None
        refresh = callback or self.async_refresh
        loop = self._loop or asyncio.get_running_loop()
        seconds = interval.total_seconds()

        def _wrapper() -> None:
            task = refresh()
            if isinstance(task, Coroutine):
                task_obj = loop.create_task(task)
                self._pending_tasks.add(task_obj)
                task_obj.add_done_callback(self._on_refresh_done)
            self._refresh_task = loop.call_later(seconds, _wrapper)

        self.cancel_refresh()
        self._refresh_task = loop.call_later(seconds, _wrapper)
        return self._refresh_task

    def _on_refresh_done(self, task: asyncio.Task[Any]) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            self._logger.error("Scheduled refresh failed: %s", err)

    def cancel_refresh(self) -> None:
        """Cancel any scheduled refresh callbacks."""

        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
