"""
Home Assistant MQTT discovery publishing.

Every sensor gets two retained messages under
``homeassistant/sensor/{sensor_name}/{key}/``:

- ``config``: JSON discovery payload (name, state topic, unique id, device,
  optional device class and unit)
- ``state``: the bare value as text

Config is published before state for each sensor. There is no atomicity
across sensors; a subscriber can see a cycle half-applied.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pws_mqtt.schemas import DeviceInfo, DiscoveryConfig

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pws_mqtt.schemas import Number, SensorDescriptor

logger = logging.getLogger(__name__)

DISCOVERY_PREFIX = "homeassistant/sensor"
MANUFACTURER = "Weather.com"


# Flow parameter type: Prefect's schema generation needs isinstance() support
@runtime_checkable
class SupportsPublish(Protocol):
    def publish(self, topic: str, payload: str, *, retain: bool) -> None: ...


def config_topic(sensor_name: str, key: str) -> str:
    return f"{DISCOVERY_PREFIX}/{sensor_name}/{key}/config"


def state_topic(sensor_name: str, key: str) -> str:
    return f"{DISCOVERY_PREFIX}/{sensor_name}/{key}/state"


def device_info(sensor_name: str) -> DeviceInfo:
    """The single logical device all sensors of a set belong to."""
    return DeviceInfo(
        identifiers=[sensor_name],
        name=f"Weather Station {sensor_name}",
        manufacturer=MANUFACTURER,
    )


def build_discovery_config(
    sensor_name: str,
    descriptor: SensorDescriptor,
    device: DeviceInfo,
) -> DiscoveryConfig:
    return DiscoveryConfig(
        name=f"Weather {sensor_name} {descriptor.name}",
        state_topic=state_topic(sensor_name, descriptor.key),
        unique_id=f"{sensor_name}_{descriptor.key}",
        device=device,
        device_class=descriptor.device_class,
        unit_of_measurement=descriptor.unit,
    )


def format_state(value: str | Number) -> str:
    """Bare text for a state topic; whole-number floats drop the ".0"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def publish_sensors(
    broker: SupportsPublish,
    sensor_name: str,
    descriptors: Iterable[SensorDescriptor],
) -> int:
    """
    Publish a retained config + state pair for every descriptor.

    Args:
        broker: Connection to publish through (fire-and-forget).
        sensor_name: Sensor set name; device id and topic segment.
        descriptors: Sensors in publication order.

    Returns:
        Number of sensors published.
    """
    device = device_info(sensor_name)
    count = 0
    for descriptor in descriptors:
        config = build_discovery_config(sensor_name, descriptor, device)
        broker.publish(
            config_topic(sensor_name, descriptor.key),
            config.model_dump_json(exclude_none=True),
            retain=True,
        )
        broker.publish(
            config.state_topic,
            format_state(descriptor.value),
            retain=True,
        )
        logger.debug("Published %s = %s", descriptor.key, descriptor.value)
        count += 1

    logger.info("Published %d sensors for %s", count, sensor_name)
    return count
