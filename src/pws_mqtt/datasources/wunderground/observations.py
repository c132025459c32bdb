"""Current observation for a single station."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import requests
from pydantic import ValidationError

from pws_mqtt.datasources.wunderground.client import BASE_PARAMS, CURRENT_OBSERVATIONS_API
from pws_mqtt.datasources.wunderground.client import session as default_session
from pws_mqtt.exceptions import FetchError
from pws_mqtt.schemas import Observation

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def fetch_observation(
    station_id: str,
    api_key: str,
    *,
    session: requests.Session | None = None,
) -> Observation:
    """
    Fetch the latest observation for one station. Makes exactly one request.

    Args:
        station_id: PWS station identifier (e.g. ``"KCASANFR1234"``).
        api_key: Weather.com API key.
        session: Session to use (defaults to the module session).

    Returns:
        The first element of the response's ``observations`` array.

    Raises:
        FetchError: On transport errors, non-2xx responses, undecodable
            bodies, an empty ``observations`` array, or an invalid record.
    """
    params: dict[str, str] = {**BASE_PARAMS, "apiKey": api_key, "stationId": station_id}
    http = session or default_session

    try:
        resp = http.get(CURRENT_OBSERVATIONS_API, params=params)
        resp.raise_for_status()
        data: Any = resp.json()
    except requests.HTTPError as exc:
        raise FetchError(station_id, f"HTTP {exc.response.status_code}") from exc
    except requests.RequestException as exc:
        # Includes JSON decode errors (requests.JSONDecodeError)
        raise FetchError(station_id, str(exc) or type(exc).__name__) from exc

    observations = data.get("observations") if isinstance(data, dict) else None
    if not isinstance(observations, list) or not observations:
        raise FetchError(station_id, "response contained no observations")

    try:
        observation = Observation.model_validate(observations[0])
    except ValidationError as exc:
        raise FetchError(station_id, f"invalid observation: {exc.error_count()} error(s)") from exc

    logger.debug("Observation for %s at %s", station_id, observation.obs_time_utc)
    return observation


def station_fetcher(
    api_key: str,
    session: requests.Session | None = None,
) -> Callable[[str], Observation]:
    """Bind credentials so the retrier only deals in station ids."""

    def _fetch(station_id: str) -> Observation:
        return fetch_observation(station_id, api_key, session=session)

    return _fetch
