"""
Observation → sensor descriptors.

The sensor set is a fixed, ordered schema. Each entry names where its value
lives in the observation (top level or the ``metric`` group), the key used in
topics and unique ids (the upstream field name), and the Home Assistant
display metadata.

Absent or null values produce no descriptor, so nothing is published for that
sensor this cycle and the broker keeps its last retained state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pws_mqtt.schemas import SensorDescriptor

if TYPE_CHECKING:
    from pws_mqtt.schemas import Observation


class Source(StrEnum):
    """Where a sensor's value lives in the observation."""

    OBSERVATION = "observation"
    METRIC = "metric"


@dataclass(frozen=True)
class SensorSpec:
    """Static metadata for one sensor."""

    key: str
    name: str
    unit: str | None
    device_class: str | None
    source: Source
    field: str


#: Publication order is this tuple's order.
SENSOR_SCHEMA: tuple[SensorSpec, ...] = (
    SensorSpec("obsTimeUtc", "Observation Time", None, None, Source.OBSERVATION, "obs_time_utc"),
    SensorSpec(
        "solarRadiation", "Solar Radiation", "W/m²", None, Source.OBSERVATION, "solar_radiation"
    ),
    SensorSpec("winddir", "Wind Direction", "°", None, Source.OBSERVATION, "winddir"),
    SensorSpec("humidity", "Humidity", "%", "humidity", Source.OBSERVATION, "humidity"),
    SensorSpec("temp", "Temperature", "°C", "temperature", Source.METRIC, "temp"),
    SensorSpec("heatIndex", "Heat Index", "°C", "temperature", Source.METRIC, "heat_index"),
    SensorSpec("dewpt", "Dew Point", "°C", "temperature", Source.METRIC, "dewpt"),
    SensorSpec("windChill", "Wind Chill", "°C", "temperature", Source.METRIC, "wind_chill"),
    SensorSpec("windSpeed", "Wind Speed", "km/h", "wind_speed", Source.METRIC, "wind_speed"),
    SensorSpec("windGust", "Wind Gust", "km/h", "wind_speed", Source.METRIC, "wind_gust"),
    SensorSpec("pressure", "Pressure", "hPa", "pressure", Source.METRIC, "pressure"),
    SensorSpec("precipRate", "Precipitation Rate", "mm/h", None, Source.METRIC, "precip_rate"),
    SensorSpec("precipTotal", "Precipitation Total", "mm", None, Source.METRIC, "precip_total"),
    SensorSpec("elev", "Elevation", "m", None, Source.METRIC, "elev"),
)


def map_observation(observation: Observation) -> list[SensorDescriptor]:
    """
    Convert an observation into descriptors, in ``SENSOR_SCHEMA`` order.

    Pure: the same observation always yields the same list.
    """
    descriptors: list[SensorDescriptor] = []
    for spec in SENSOR_SCHEMA:
        holder = observation if spec.source is Source.OBSERVATION else observation.metric
        if holder is None:
            continue
        value = getattr(holder, spec.field)
        if value is None:
            continue
        descriptors.append(
            SensorDescriptor(
                key=spec.key,
                name=spec.name,
                device_class=spec.device_class,
                unit=spec.unit,
                value=value,
            )
        )
    return descriptors
