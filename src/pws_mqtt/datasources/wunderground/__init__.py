"""Weather.com / Weather Underground PWS data source.

Public API:
  - observations: fetch_observation (one request, one station), station_fetcher
  - stations: resolve_observation (station fallback + fixed-delay retries)
  - client: API URL, request headers, shared session
"""

from pws_mqtt.datasources.wunderground.client import CURRENT_OBSERVATIONS_API
from pws_mqtt.datasources.wunderground.observations import fetch_observation, station_fetcher
from pws_mqtt.datasources.wunderground.stations import RETRY_DELAY_SECONDS, resolve_observation

__all__ = [
    "CURRENT_OBSERVATIONS_API",
    "RETRY_DELAY_SECONDS",
    "fetch_observation",
    "resolve_observation",
    "station_fetcher",
]
