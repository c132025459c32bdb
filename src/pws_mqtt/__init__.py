"""pws-mqtt - personal weather station observations published to MQTT.

Architecture::

    config.py      Settings from the environment (pydantic-settings)
    datasources/   Upstream weather API client + station fallback retrier
    sensors.py     Observation → ordered sensor descriptors (fixed schema)
    discovery.py   Home Assistant discovery config/state publishing
    services/      Shared utilities (HTTP session, MQTT broker adapter)
    flows/         Prefect flow for one fetch → map → publish cycle
    scheduler.py   Broker lifecycle + fixed-interval cycle driver
    cli.py         Entry point; maps errors to process exit codes

Data flow: scheduler → flows.publish → datasources → sensors → discovery → broker
"""

__version__ = "0.1.0"

from pws_mqtt.config import Settings
from pws_mqtt.schemas import Observation, SensorDescriptor

__all__ = ["Observation", "SensorDescriptor", "Settings", "__version__"]
