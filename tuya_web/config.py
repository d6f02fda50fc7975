"""Configuration structures for the platform and its accessories.

Accessory options are pydantic models with every pipeline enumerated and
defaulted; operators may use either the snake_case field names or the
camelCase keys (``toTuyaBrightness``, ``useCache``...) they are aliased to.
The platform block is validated with a voluptuous schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

import voluptuous as vol
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError
from .state.cache import DEFAULT_CACHE_TTL
from .transformations import IDENTITY, TUYA_TO_PERCENT, Pipeline


class DeviceType(str, Enum):
    """Device types reported by discovery or forced through overrides."""

    SWITCH = "switch"
    OUTLET = "outlet"
    DIMMER = "dimmer"
    LIGHT = "light"
    LIGHT_TEMPERATURE = "light_temperature"
    COVER = "cover"


PLATFORMS: tuple[str, ...] = ("tuya", "smart_life", "jinvoo_smart")


class AccessoryConfig(BaseModel):
    """Options shared by every accessory."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    use_cache: bool = Field(default=True, alias="useCache")


class SwitchConfig(AccessoryConfig):
    """Options for switches and outlets."""


class DimmerConfig(AccessoryConfig):
    """Options for dimmable lights."""

    to_tuya_brightness: Pipeline = Field(default=IDENTITY, alias="toTuyaBrightness")
    from_tuya_brightness: Pipeline = Field(
        default=TUYA_TO_PERCENT, alias="fromTuyaBrightness"
    )


class LightConfig(DimmerConfig):
    """Options for colour lights."""

    to_tuya_color_brightness: Pipeline = Field(
        default=IDENTITY, alias="toTuyaColorBrightness"
    )
    from_tuya_color_brightness: Pipeline = Field(
        default=IDENTITY, alias="fromTuyaColorBrightness"
    )
    to_tuya_saturation: Pipeline = Field(default=IDENTITY, alias="toTuyaSaturation")
    from_tuya_saturation: Pipeline = Field(
        default=TUYA_TO_PERCENT, alias="fromTuyaSaturation"
    )
    to_tuya_hue: Pipeline = Field(default=IDENTITY, alias="toTuyaHue")
    from_tuya_hue: Pipeline = Field(default=TUYA_TO_PERCENT, alias="fromTuyaHue")


class LightTemperatureConfig(DimmerConfig):
    """Options for white-spectrum lights."""

    to_tuya_temperature: Pipeline = Field(default=IDENTITY, alias="toTuyaTemperature")
    from_tuya_temperature: Pipeline = Field(
        default=IDENTITY, alias="fromTuyaTemperature"
    )


class WindowCoveringConfig(DimmerConfig):
    """Options for window coverings."""


CONFIG_MODELS: dict[DeviceType, type[AccessoryConfig]] = {
    DeviceType.SWITCH: SwitchConfig,
    DeviceType.OUTLET: SwitchConfig,
    DeviceType.DIMMER: DimmerConfig,
    DeviceType.LIGHT: LightConfig,
    DeviceType.LIGHT_TEMPERATURE: LightTemperatureConfig,
    DeviceType.COVER: WindowCoveringConfig,
}


def parse_accessory_config(
    device_type: DeviceType | str, raw: Mapping[str, Any] | None = None
) -> AccessoryConfig:
    """Validate ``raw`` options for ``device_type`` over the shipped defaults."""

    try:
        model = CONFIG_MODELS[DeviceType(device_type)]
    except (KeyError, ValueError) as err:
        raise ConfigurationError(f"Unsupported device type: {device_type!r}") from err
    try:
        return model.model_validate(dict(raw or {}))
    except ValidationError as err:
        raise ConfigurationError(
            f"Invalid {DeviceType(device_type).value} configuration: {err}"
        ) from err


OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Required("username"): vol.All(str, vol.Length(min=1)),
        vol.Required("password"): vol.All(str, vol.Length(min=1)),
        vol.Required("countryCode"): vol.All(vol.Coerce(str), vol.Length(min=1)),
        vol.Optional("platform", default="tuya"): vol.In(PLATFORMS),
        vol.Optional("pollingInterval", default=None): vol.Any(
            None, vol.All(vol.Coerce(int), vol.Range(min=1))
        ),
        vol.Optional(
            "cacheTtl", default=DEFAULT_CACHE_TTL.total_seconds()
        ): vol.All(vol.Coerce(float), vol.Range(min=0)),
    }
)

DEVICE_DEFAULTS_SCHEMA = vol.Schema(
    {
        vol.Required("id"): vol.All(vol.Coerce(str), vol.Length(min=1)),
        vol.Optional("device_type", default=None): vol.Any(
            None, vol.In([device_type.value for device_type in DeviceType])
        ),
        vol.Optional("config", default={}): dict,
    }
)

PLATFORM_SCHEMA = vol.Schema(
    {
        vol.Optional("platform"): str,
        vol.Optional("name"): str,
        vol.Required("options"): OPTIONS_SCHEMA,
        vol.Optional("defaults", default=[]): [DEVICE_DEFAULTS_SCHEMA],
    }
)


@dataclass(frozen=True, slots=True)
class DeviceDefaults:
    """Per-device override matched by id or display name."""

    id: str
    device_type: DeviceType | None = None
    config: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, device_id: str, name: str | None) -> bool:
        """Return True when this override targets the given device."""

        return self.id in (device_id, name)


@dataclass(frozen=True, slots=True)
class PlatformConfig:
    """Validated platform options."""

    username: str
    password: str
    country_code: str
    platform: str = "tuya"
    polling_interval: timedelta | None = None
    cache_ttl: timedelta = DEFAULT_CACHE_TTL
    defaults: tuple[DeviceDefaults, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PlatformConfig:
        """Validate ``raw`` and build the platform configuration.

        Overrides that name a device type have their accessory options
        validated immediately.
        """

        try:
            data = PLATFORM_SCHEMA(dict(raw))
        except vol.Invalid as err:
            raise ConfigurationError(f"Invalid platform configuration: {err}") from err

        options = data["options"]
        defaults: list[DeviceDefaults] = []
        for entry in data["defaults"]:
            device_type = (
                DeviceType(entry["device_type"]) if entry["device_type"] else None
            )
            if device_type is not None:
                parse_accessory_config(device_type, entry["config"])
            defaults.append(
                DeviceDefaults(
                    id=entry["id"], device_type=device_type, config=entry["config"]
                )
            )

        polling = options["pollingInterval"]
        return cls(
            username=options["username"],
            password=options["password"],
            country_code=options["countryCode"],
            platform=options["platform"],
            polling_interval=timedelta(seconds=polling) if polling else None,
            cache_ttl=timedelta(seconds=options["cacheTtl"]),
            defaults=tuple(defaults),
        )

    def defaults_for(
        self, device_id: str, name: str | None = None
    ) -> DeviceDefaults | None:
        """Return the override for ``device_id`` or ``name`` if configured."""

        for entry in self.defaults:
            if entry.matches(device_id, name):
                return entry
        return None
