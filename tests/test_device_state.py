"""Tests for the device state orchestrator."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import pytest

from tuya_web.exceptions import ConfigurationError, RemoteFetchError, RemoteSetError
from tuya_web.state import (
    CommandGroup,
    DeviceStateManager,
    FieldSource,
    GroupMember,
    PropertySpec,
    StateCache,
    power_spec,
)
from tuya_web.transformations import TUYA_TO_PERCENT, build_pipeline

DEVICE_ID = "dev-1"
DOUBLE = build_pipeline([{"type": "multiply", "value": 2}])


def _brightness_spec() -> PropertySpec:
    return PropertySpec(
        key="brightness",
        sources=(FieldSource(("brightness",), TUYA_TO_PERCENT),),
        command="brightnessSet",
        to_device=DOUBLE,
    )


def _manager(
    api,
    clock,
    *,
    use_cache: bool = True,
    listener=None,
    properties: list[PropertySpec] | None = None,
    groups: list[CommandGroup] | None = None,
) -> DeviceStateManager:
    return DeviceStateManager(
        device_id=DEVICE_ID,
        api=api,
        cache=StateCache(timedelta(seconds=10), monotonic=clock),
        properties=properties or [power_spec(), _brightness_spec()],
        groups=groups or [],
        use_cache=use_cache,
        name="Desk lamp",
        on_update=listener,
    )


async def test_get_state_fetches_and_populates_cache(api, clock) -> None:
    """A cold read fetches once, transforms every field and caches them."""

    api.snapshot = {"state": "true", "brightness": "128"}
    manager = _manager(api, clock)

    assert await manager.get_state("brightness") == 50
    assert await manager.get_state("power") is True
    assert api.fetches == [DEVICE_ID]
    assert manager.cache.values(DEVICE_ID) == {"power": True, "brightness": 50}


async def test_get_state_refetches_after_ttl(api, clock) -> None:
    """Expired entries trigger a new fetch."""

    api.snapshot = {"state": "false", "brightness": 255}
    manager = _manager(api, clock)

    await manager.get_state("brightness")
    clock.advance(10)
    api.snapshot = {"state": "false", "brightness": 0}

    assert await manager.get_state("brightness") == 0
    assert len(api.fetches) == 2


async def test_get_state_bypasses_cache_when_disabled(api, clock) -> None:
    """``use_cache`` off always reaches the device."""

    api.snapshot = {"state": "true", "brightness": 255}
    manager = _manager(api, clock, use_cache=False)

    await manager.get_state("power")
    await manager.get_state("power")
    await manager.get_state("power", use_cache=True)

    assert len(api.fetches) == 2


async def test_unreported_property_is_served_from_cache(api, clock) -> None:
    """A property missing from the snapshot is cached as None."""

    api.snapshot = {"state": "true"}
    manager = _manager(api, clock)

    for _ in range(3):
        assert await manager.get_state("brightness") is None

    assert api.fetches == [DEVICE_ID]
    assert manager.cache.values(DEVICE_ID) == {"power": True, "brightness": None}


async def test_write_on_cold_device_still_fetches_other_keys(api, clock) -> None:
    """A write alone does not make untouched properties readable."""

    api.snapshot = {"state": "false", "brightness": 255}
    manager = _manager(api, clock)

    await manager.set_state("brightness", 40)

    assert await manager.get_state("power") is False
    assert api.fetches == [DEVICE_ID]


async def test_update_state_skips_unreported_properties(api, clock) -> None:
    """Listeners never hear about properties the push left out."""

    updates: list[tuple[str, Any]] = []
    manager = _manager(
        api, clock, listener=lambda key, value: updates.append((key, value))
    )

    assert manager.update_state({"state": "true"}) == {"power": True}
    assert updates == [("power", True)]


async def test_fetch_failure_invalidates_and_propagates(api, clock) -> None:
    """The same error object reaches the caller and the cache is cleared."""

    api.snapshot = {"state": "true", "brightness": 255}
    manager = _manager(api, clock)
    await manager.get_state("power")
    clock.advance(11)

    error = RemoteFetchError("boom")
    api.fetch_error = error
    with pytest.raises(RemoteFetchError) as excinfo:
        await manager.get_state("power")

    assert excinfo.value is error
    assert manager.cache.values(DEVICE_ID) == {}
    assert len(api.fetches) == 2


async def test_set_state_transforms_and_caches_standard_value(api, clock) -> None:
    """The device receives the transformed value; the cache keeps the input."""

    manager = _manager(api, clock)

    await manager.set_state("brightness", 30)

    assert api.commands == [(DEVICE_ID, "brightnessSet", {"value": 60})]
    assert manager.cache.is_valid(DEVICE_ID)
    assert await manager.get_state("brightness") == 30
    assert api.fetches == []


async def test_set_power_sends_numeric_flag(api, clock) -> None:
    """Booleans are sent as 1/0 and cached untouched."""

    manager = _manager(api, clock)

    await manager.set_state("power", True)
    await manager.set_state("power", False)

    assert [command[2] for command in api.commands] == [{"value": 1}, {"value": 0}]
    assert await manager.get_state("power") is False


async def test_set_state_failure_invalidates_whole_device(api, clock) -> None:
    """A failed write clears every cached property of the device."""

    api.snapshot = {"state": "true", "brightness": 255}
    manager = _manager(api, clock)
    await manager.get_state("power")

    error = RemoteSetError("rejected", code="FrequentlyInvoke")
    api.set_error = error
    with pytest.raises(RemoteSetError) as excinfo:
        await manager.set_state("brightness", 10)

    assert excinfo.value is error
    assert not manager.cache.is_valid(DEVICE_ID)
    assert not manager.cache.has(DEVICE_ID, "power")


async def test_update_state_transforms_and_notifies_changes(api, clock) -> None:
    """Pushed values go through the read pipelines before caching."""

    updates: list[tuple[str, Any]] = []
    manager = _manager(
        api, clock, listener=lambda key, value: updates.append((key, value))
    )

    changed = manager.update_state({"state": "true", "brightness": "255"})

    assert changed == {"power": True, "brightness": 100}
    assert updates == [("power", True), ("brightness", 100)]
    assert await manager.get_state("brightness") == 100
    assert api.fetches == []

    updates.clear()
    manager.update_state({"state": "false", "brightness": "255"})

    assert updates == [("power", False)]


async def test_grouped_property_sends_siblings_and_caches_only_itself(
    api, clock
) -> None:
    """Writing hue resends saturation but only records hue."""

    api.snapshot = {"color": {"saturation": 80, "hue": 10}}
    properties = [
        PropertySpec(
            key="saturation",
            sources=(FieldSource(("color", "saturation")),),
            group="color",
        ),
        PropertySpec(
            key="hue", sources=(FieldSource(("color", "hue")),), group="color"
        ),
    ]
    groups = [
        CommandGroup(
            command="colorSet",
            block="color",
            members=(
                GroupMember("saturation", "saturation", DOUBLE),
                GroupMember("hue", "hue"),
            ),
        )
    ]
    manager = _manager(api, clock, properties=properties, groups=groups)

    await manager.set_state("hue", 200)

    assert api.commands == [
        (DEVICE_ID, "colorSet", {"color": {"saturation": 160, "hue": 200}})
    ]
    assert manager.cache.values(DEVICE_ID) == {"saturation": 80, "hue": 200}


async def test_unknown_property_is_a_configuration_error(api, clock) -> None:
    """Asking for an untracked property fails loudly."""

    manager = _manager(api, clock)

    with pytest.raises(ConfigurationError):
        await manager.get_state("hue")


async def test_read_only_property_cannot_be_set(api, clock) -> None:
    """Properties without a command reject writes before any remote call."""

    manager = _manager(
        api,
        clock,
        properties=[PropertySpec(key="motion", sources=(FieldSource(("state",)),))],
    )

    with pytest.raises(ConfigurationError):
        await manager.set_state("motion", 1)
    assert api.commands == []


def test_group_reference_must_exist(api, clock) -> None:
    """Specs naming an unknown group are rejected at construction."""

    with pytest.raises(ConfigurationError):
        _manager(
            api,
            clock,
            properties=[
                PropertySpec(key="hue", sources=(FieldSource(("hue",)),), group="color")
            ],
        )


async def test_concurrent_cold_reads_each_fetch(api, clock) -> None:
    """Concurrent reads during an invalid window fetch independently."""

    api.snapshot = {"state": "true", "brightness": 255}
    manager = _manager(api, clock)

    power, brightness = await asyncio.gather(
        manager.get_state("power"), manager.get_state("brightness")
    )

    assert power is True
    assert brightness == 100
    assert len(api.fetches) == 2
    assert manager.cache.values(DEVICE_ID) == {"power": True, "brightness": 100}


async def test_failed_write_races_cached_read(api, clock) -> None:
    """A cached read and a failing write settle on an invalid cache."""

    api.snapshot = {"state": "true", "brightness": 255}
    manager = _manager(api, clock)
    await manager.get_state("power")
    api.set_error = RemoteSetError("offline")

    read, write = await asyncio.gather(
        manager.get_state("power"),
        manager.set_state("brightness", 20),
        return_exceptions=True,
    )

    assert read is True
    assert isinstance(write, RemoteSetError)
    assert not manager.cache.is_valid(DEVICE_ID)
