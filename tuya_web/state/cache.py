"""Short-lived per-device state cache."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

DEFAULT_CACHE_TTL = timedelta(seconds=30)


@dataclass(slots=True)
class DeviceCacheEntry:
    """Cached property values for one device sharing a freshness marker."""

    recorded_at: float
    values: dict[str, Any] = field(default_factory=dict)


class StateCache:
    """Cache of the last known property values keyed by device id.

    Every write refreshes the whole device's marker; expiry is checked
    passively in :meth:`is_valid` rather than by a timer.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_CACHE_TTL,
        *,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        """Initialise an empty cache with the provided freshness window."""

        self._ttl = ttl.total_seconds()
        self._monotonic = monotonic or time.monotonic
        self._entries: dict[str, DeviceCacheEntry] = {}

    @property
    def ttl(self) -> timedelta:
        """Return the configured freshness window."""

        return timedelta(seconds=self._ttl)

    def is_valid(self, device_id: str) -> bool:
        """Return True when ``device_id`` has entries younger than the TTL."""

        entry = self._entries.get(device_id)
        if entry is None:
            return False
        return self._monotonic() - entry.recorded_at < self._ttl

    def has(self, device_id: str, key: str) -> bool:
        """Return True when a value for ``key`` has been recorded."""

        entry = self._entries.get(device_id)
        return entry is not None and key in entry.values

    def read(self, device_id: str, key: str) -> Any:
        """Return the last recorded value without checking freshness.

        Raises:
            KeyError: when nothing was recorded for the device or key.
        """

        return self._entries[device_id].values[key]

    def values(self, device_id: str) -> dict[str, Any]:
        """Return a copy of every recorded value for ``device_id``."""

        entry = self._entries.get(device_id)
        if entry is None:
            return {}
        return dict(entry.values)

    def write(self, device_id: str, key: str, value: Any) -> None:
        """Upsert ``key`` and refresh the device-wide freshness marker."""

        entry = self._entries.get(device_id)
        now = self._monotonic()
        if entry is None:
            self._entries[device_id] = DeviceCacheEntry(now, {key: value})
            return
        entry.values[key] = value
        entry.recorded_at = now

    def populate(self, device_id: str, values: Mapping[str, Any]) -> None:
        """Replace every entry for ``device_id`` with ``values``."""

        self._entries[device_id] = DeviceCacheEntry(self._monotonic(), dict(values))

    def invalidate(self, device_id: str) -> None:
        """Drop every entry recorded for ``device_id``."""

        self._entries.pop(device_id, None)
