"""Device state orchestration over the cache, pipelines and remote client.

:class:`DeviceStateManager` serves property reads from the injected
:class:`~tuya_web.state.cache.StateCache` while it is fresh, fetches and
repopulates it otherwise, and pushes writes to the Tuya cloud before caching
the accepted value. Any remote failure clears the whole device from the cache
and is re-raised unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..exceptions import ConfigurationError
from ..transformations import Pipeline, apply_transformations
from .cache import StateCache

_LOGGER = logging.getLogger(__name__)

Snapshot = Mapping[str, Any]
UpdateListener = Callable[[str, Any], None]

POWER_COMMAND = "turnOnOff"
_TRUTHY = frozenset({"true", "1", "on"})


class DeviceApi(Protocol):
    """Subset of the remote client used for state orchestration."""

    async def get_device_state(self, device_id: str) -> dict[str, Any]:
        """Return the raw state snapshot reported for ``device_id``."""

    async def set_device_state(
        self, device_id: str, command: str, payload: Mapping[str, Any]
    ) -> None:
        """Send ``command`` with ``payload`` to ``device_id``."""


def parse_power(raw: Any) -> bool:
    """Interpret the power flag, which Tuya reports as ``"true"``/``"false"``."""

    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY
    return bool(raw)


@dataclass(frozen=True, slots=True)
class FieldSource:
    """Location of a raw value in a snapshot and its read pipeline."""

    path: tuple[str, ...]
    pipeline: Pipeline = ()

    def resolve(self, snapshot: Snapshot) -> Any:
        """Return the raw value at :attr:`path`, or None when absent."""

        current: Any = snapshot
        for part in self.path:
            if not isinstance(current, Mapping):
                return None
            current = current.get(part)
        if current == "":
            return None
        return current


@dataclass(frozen=True, slots=True)
class PropertySpec:
    """Describe how one accessory property maps onto the device.

    ``sources`` are tried in order and the first one present in a snapshot
    wins. Boolean properties bypass the pipelines entirely.
    """

    key: str
    sources: tuple[FieldSource, ...]
    command: str | None = None
    to_device: Pipeline = ()
    boolean: bool = False
    group: str | None = None

    def decode(self, snapshot: Snapshot) -> Any:
        """Return the standard-space value found in ``snapshot``."""

        for source in self.sources:
            raw = source.resolve(snapshot)
            if raw is None:
                continue
            if self.boolean:
                return parse_power(raw)
            return apply_transformations(source.pipeline, raw)
        return None

    def encode(self, value: Any) -> Any:
        """Return the device-space value for a standard ``value``."""

        if self.boolean:
            return 1 if value else 0
        return apply_transformations(self.to_device, value)


@dataclass(frozen=True, slots=True)
class GroupMember:
    """A property written as one field of a grouped command."""

    key: str
    field: str
    to_device: Pipeline = ()
    default: Any = None


@dataclass(frozen=True, slots=True)
class CommandGroup:
    """Several properties that the device only accepts together."""

    command: str
    block: str
    members: tuple[GroupMember, ...] = field(default_factory=tuple)


def power_spec() -> PropertySpec:
    """Return the untransformed on/off property shared by every adapter."""

    return PropertySpec(
        key="power",
        sources=(FieldSource(("state",)),),
        command=POWER_COMMAND,
        boolean=True,
    )


class DeviceStateManager:
    """Coordinate cached reads and remote writes for a single device."""

    def __init__(
        self,
        *,
        device_id: str,
        api: DeviceApi,
        cache: StateCache,
        properties: Sequence[PropertySpec],
        groups: Sequence[CommandGroup] = (),
        use_cache: bool = True,
        name: str | None = None,
        on_update: UpdateListener | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Bind the device to its cache, remote client and property specs."""

        self.device_id = device_id
        self.name = name or device_id
        self.use_cache = use_cache
        self._api = api
        self._cache = cache
        self._properties: dict[str, PropertySpec] = {}
        for spec in properties:
            if spec.key in self._properties:
                raise ConfigurationError(f"Duplicate property '{spec.key}'")
            self._properties[spec.key] = spec
        self._groups = {group.block: group for group in groups}
        for spec in self._properties.values():
            if spec.group is not None and spec.group not in self._groups:
                raise ConfigurationError(
                    f"Property '{spec.key}' references unknown group '{spec.group}'"
                )
        self._on_update = on_update
        self._logger = logger or _LOGGER

    @property
    def cache(self) -> StateCache:
        """Return the cache owned by this device."""

        return self._cache

    @property
    def properties(self) -> dict[str, PropertySpec]:
        """Return the property specs keyed by property name."""

        return dict(self._properties)

    def set_update_listener(self, listener: UpdateListener | None) -> None:
        """Replace the callback notified about pushed property changes."""

        self._on_update = listener

    def _spec(self, key: str) -> PropertySpec:
        try:
            return self._properties[key]
        except KeyError as err:
            raise ConfigurationError(
                f"{self.name} has no property '{key}'"
            ) from err

    def _transform_snapshot(self, snapshot: Snapshot) -> dict[str, Any]:
        """Run every read pipeline over ``snapshot``.

        Every tracked property gets an entry; unreported ones map to None so
        a fresh cache can answer for them too.
        """

        return {key: spec.decode(snapshot) for key, spec in self._properties.items()}

    async def refresh(self) -> dict[str, Any]:
        """Fetch the device state and repopulate the cache.

        Raises:
            Exception: whatever the remote client raised, after the device
                cache has been invalidated.
        """

        try:
            snapshot = await self._api.get_device_state(self.device_id)
        except Exception as err:
            self._cache.invalidate(self.device_id)
            self._logger.error("[GET][%s] Error: %s", self.name, err)
            raise
        values = self._transform_snapshot(snapshot)
        self._logger.debug("[GET][%s] %s -> %s", self.name, snapshot, values)
        self._cache.populate(self.device_id, values)
        return values

    async def get_state(self, key: str, use_cache: bool | None = None) -> Any:
        """Return the standard-space value of ``key``.

        A fresh cache entry is returned directly; otherwise the device is
        fetched and the cache repopulated. Returns None when the device does
        not report the property.
        """

        spec = self._spec(key)
        if use_cache is None:
            use_cache = self.use_cache
        if (
            use_cache
            and self._cache.is_valid(self.device_id)
            and self._cache.has(self.device_id, spec.key)
        ):
            return self._cache.read(self.device_id, spec.key)
        values = await self.refresh()
        return values.get(spec.key)

    async def _build_command(
        self, spec: PropertySpec, value: Any
    ) -> tuple[str, dict[str, Any]]:
        if spec.group is None:
            if spec.command is None:
                raise ConfigurationError(f"{self.name}: '{spec.key}' is read-only")
            return spec.command, {"value": spec.encode(value)}

        group = self._groups[spec.group]
        block: dict[str, Any] = {}
        for member in group.members:
            if member.key == spec.key:
                standard = value
            else:
                standard = await self.get_state(member.key)
            if standard is None:
                standard = member.default
            if standard is None:
                continue
            block[member.field] = apply_transformations(member.to_device, standard)
        return group.command, {group.block: block}

    async def send_command(
        self,
        command: str,
        payload: Mapping[str, Any],
        *,
        log_key: str,
    ) -> None:
        """Send ``command`` and invalidate the device cache on failure."""

        try:
            await self._api.set_device_state(self.device_id, command, payload)
        except Exception as err:
            self._cache.invalidate(self.device_id)
            self._logger.error("[SET][%s] %s Error: %s", self.name, log_key, err)
            raise

    async def set_state(self, key: str, value: Any) -> None:
        """Write a standard-space ``value`` for ``key`` to the device.

        On success the accepted value is cached as-is without re-fetching.
        """

        spec = self._spec(key)
        command, payload = await self._build_command(spec, value)
        await self.send_command(command, payload, log_key=spec.key)
        self._logger.debug(
            "[SET][%s] %s: %s (%s %s)", self.name, spec.key, value, command, payload
        )
        self._cache.write(self.device_id, spec.key, value)

    def update_state(self, snapshot: Snapshot) -> dict[str, Any]:
        """Apply a pushed ``snapshot`` and notify listeners of changed values.

        Returns the properties whose value changed.
        """

        self._logger.debug("[UPDATING][%s]: %s", self.name, snapshot)
        previous = (
            self._cache.values(self.device_id)
            if self._cache.is_valid(self.device_id)
            else {}
        )
        values = self._transform_snapshot(snapshot)
        self._cache.populate(self.device_id, values)
        changed = {
            key: value
            for key, value in values.items()
            if value is not None and (key not in previous or previous[key] != value)
        }
        if self._on_update is not None:
            for key, value in changed.items():
                self._on_update(key, value)
        return changed
