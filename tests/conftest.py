"""Pytest configuration and shared fakes for the Tuya Web bridge tests."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

root_path = Path(__file__).resolve().parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from tuya_web.accessory import (  # noqa: E402
    AccessoryCategory,
    Characteristic,
    CharacteristicHandlers,
)
from tuya_web.api import TuyaDevice  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register markers used throughout the test suite."""

    config.addinivalue_line(
        "markers", "asyncio: mark coroutine tests to execute via asyncio loop"
    )


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute coroutine tests within a dedicated event loop."""

    test_function = pyfuncitem.obj
    if not asyncio.iscoroutinefunction(test_function):
        return None

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
        }
        loop.run_until_complete(test_function(**kwargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        """Start the clock at ``start`` seconds."""

        self.now = start

    def __call__(self) -> float:
        """Return the current time."""

        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""

        self.now += seconds


class FakeApi:
    """Remote client double recording fetches and commands."""

    def __init__(self, snapshot: Mapping[str, Any] | None = None) -> None:
        """Serve ``snapshot`` for every fetch until told otherwise."""

        self.snapshot: dict[str, Any] = dict(snapshot or {})
        self.fetches: list[str] = []
        self.commands: list[tuple[str, str, dict[str, Any]]] = []
        self.fetch_error: Exception | None = None
        self.set_error: Exception | None = None
        self.devices: list[TuyaDevice] = []
        self.discoveries = 0

    async def discover_devices(self) -> list[TuyaDevice]:
        """Return the configured discovery result."""

        self.discoveries += 1
        await asyncio.sleep(0)
        return list(self.devices)

    async def get_device_state(self, device_id: str) -> dict[str, Any]:
        """Record the fetch and return the configured snapshot."""

        self.fetches.append(device_id)
        await asyncio.sleep(0)
        if self.fetch_error is not None:
            raise self.fetch_error
        return dict(self.snapshot)

    async def set_device_state(
        self, device_id: str, command: str, payload: Mapping[str, Any]
    ) -> None:
        """Record the command or raise the configured error."""

        self.commands.append((device_id, command, dict(payload)))
        await asyncio.sleep(0)
        if self.set_error is not None:
            raise self.set_error


class FakeService:
    """Accessory framework service capturing handlers and pushed values."""

    def __init__(
        self,
        device_id: str = "",
        name: str = "",
        category: AccessoryCategory | None = None,
    ) -> None:
        """Start with no handlers registered."""

        self.device_id = device_id
        self.name = name
        self.category = category
        self.handlers: dict[Characteristic, CharacteristicHandlers] = {}
        self.updates: list[tuple[Characteristic, Any]] = []

    def register(
        self, characteristic: Characteristic, handlers: CharacteristicHandlers
    ) -> None:
        """Store the handler pair."""

        self.handlers[characteristic] = handlers

    def update_value(self, characteristic: Characteristic, value: Any) -> None:
        """Record a pushed value."""

        self.updates.append((characteristic, value))

    async def get(self, characteristic: Characteristic) -> Any:
        """Invoke the registered getter."""

        return await self.handlers[characteristic].getter()

    async def set(self, characteristic: Characteristic, value: Any) -> None:
        """Invoke the registered setter."""

        setter = self.handlers[characteristic].setter
        assert setter is not None
        await setter(value)


@pytest.fixture
def clock() -> FakeClock:
    """Return a controllable monotonic clock."""

    return FakeClock()


@pytest.fixture
def api() -> FakeApi:
    """Return a remote client double with an empty snapshot."""

    return FakeApi()


@pytest.fixture
def service() -> FakeService:
    """Return a framework service double."""

    return FakeService()


@pytest.fixture
def service_factory() -> Any:
    """Return a service factory that remembers every service it created."""

    created: dict[str, FakeService] = {}

    def _factory(
        device_id: str, name: str, category: AccessoryCategory
    ) -> FakeService:
        service = FakeService(device_id, name, category)
        created[device_id] = service
        return service

    _factory.created = created  # type: ignore[attr-defined]
    return _factory
