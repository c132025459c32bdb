"""
Domain models for pws-mqtt.

Pydantic models for the upstream observation payload and for the messages we
publish. Upstream field names are camelCase; models expose snake_case
attributes with the upstream names as aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Integers stay integers so a state of 55 is published as "55", not "55.0"
Number = int | float

# =============================================================================
# Upstream observation (api.weather.com PWS "current" endpoint, units=m)
# =============================================================================


class MetricGroup(BaseModel):
    """Unit-converted values nested under ``metric`` in an observation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    temp: Number | None = None
    heat_index: Number | None = Field(default=None, alias="heatIndex")
    dewpt: Number | None = None
    wind_chill: Number | None = Field(default=None, alias="windChill")
    wind_speed: Number | None = Field(default=None, alias="windSpeed")
    wind_gust: Number | None = Field(default=None, alias="windGust")
    pressure: Number | None = None
    precip_rate: Number | None = Field(default=None, alias="precipRate")
    precip_total: Number | None = Field(default=None, alias="precipTotal")
    elev: Number | None = None


class Observation(BaseModel):
    """One station observation. Any field may be absent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    station_id: str | None = Field(default=None, alias="stationID")
    obs_time_utc: str | None = Field(default=None, alias="obsTimeUtc")
    solar_radiation: Number | None = Field(default=None, alias="solarRadiation")
    winddir: Number | None = None
    humidity: Number | None = None
    metric: MetricGroup | None = None


# =============================================================================
# Sensors and discovery payloads
# =============================================================================


class SensorDescriptor(BaseModel):
    """A single publishable sensor value. ``value`` is never None."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    device_class: str | None = None
    unit: str | None = None
    value: str | Number


class DeviceInfo(BaseModel):
    """Device block shared by every sensor of a sensor set."""

    model_config = ConfigDict(frozen=True)

    identifiers: list[str]
    name: str
    manufacturer: str


class DiscoveryConfig(BaseModel):
    """Retained ``.../config`` payload for Home Assistant MQTT discovery."""

    name: str
    state_topic: str
    unique_id: str
    device: DeviceInfo
    device_class: str | None = None
    unit_of_measurement: str | None = None
