"""
Prefect flow for one publish cycle.

fetch-observation (station fallback + retries) → publish-sensors (map the
observation to sensors, publish config/state pairs). A failed fetch fails the
flow with ``StationsExhaustedError``; nothing is published for that cycle.

Run locally (one cycle, then disconnect):
    python -m pws_mqtt.flows.publish
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable  # noqa: TC003

from prefect import flow, task
from prefect.cache_policies import NO_CACHE

from pws_mqtt.config import Settings  # noqa: TC001
from pws_mqtt.datasources.wunderground import resolve_observation, station_fetcher
from pws_mqtt.discovery import SupportsPublish, publish_sensors
from pws_mqtt.schemas import Observation  # noqa: TC001
from pws_mqtt.sensors import map_observation

logger = logging.getLogger(__name__)


# Inputs include a live broker connection, so task results are never cached.
@task(name="fetch-observation", cache_policy=NO_CACHE)
def fetch_current_observation(
    settings: Settings,
    fetch: Callable[[str], Observation] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Observation:
    """Resolve one observation across the configured stations."""
    return resolve_observation(
        settings.station_ids,
        settings.retries,
        fetch=fetch or station_fetcher(settings.api_key.get_secret_value()),
        sleep=sleep,
    )


@task(name="publish-sensors", cache_policy=NO_CACHE)
def publish_observation(
    broker: SupportsPublish,
    sensor_name: str,
    observation: Observation,
) -> int:
    """Map an observation to sensors and publish them."""
    return publish_sensors(broker, sensor_name, map_observation(observation))


@flow(name="publish-weather", validate_parameters=False)
def publish_weather(
    settings: Settings,
    broker: SupportsPublish,
    *,
    fetch: Callable[[str], Observation] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Fetch the latest observation and publish it as discoverable sensors.

    Args:
        settings: Service configuration.
        broker: Connected broker to publish through.
        fetch: Single-attempt station fetch (defaults to the Weather.com client).
        sleep: Delay between retries (injectable for tests).

    Returns:
        Number of sensors published.

    Raises:
        StationsExhaustedError: No station produced an observation.
    """
    logger.debug("Publish cycle for %s: stations %s", settings.sensor_name, settings.station_ids)
    observation = fetch_current_observation(settings, fetch, sleep)
    return publish_observation(broker, settings.sensor_name, observation)


if __name__ == "__main__":
    from pws_mqtt.cli import main

    raise SystemExit(main(["run", "--once"]))
