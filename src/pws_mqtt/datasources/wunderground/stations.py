"""Station fallback with bounded, fixed-delay retries.

Stations are tried in configured order. Each gets ``max_retries`` attempts
with a fixed pause between attempts; the first successful fetch wins and no
further stations are contacted in that cycle.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pws_mqtt.exceptions import FetchError, StationsExhaustedError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pws_mqtt.schemas import Observation

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 2.0


def resolve_observation(
    station_ids: Sequence[str],
    max_retries: int,
    *,
    fetch: Callable[[str], Observation],
    sleep: Callable[[float], None] = time.sleep,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> Observation:
    """
    Return the first observation any station yields.

    Args:
        station_ids: Stations in priority order.
        max_retries: Attempts per station (>= 1).
        fetch: Single-attempt fetch, raising ``FetchError`` on failure.
        sleep: Delay function (injectable for tests).
        retry_delay: Seconds to wait after a failed attempt before the next one.

    Raises:
        StationsExhaustedError: Every station used up its attempts.
    """
    failures: dict[str, str] = {}
    total_attempts = len(station_ids) * max_retries
    made = 0

    for station_id in station_ids:
        for attempt in range(1, max_retries + 1):
            made += 1
            try:
                observation = fetch(station_id)
            except FetchError as exc:
                failures[station_id] = exc.reason
                logger.warning(
                    "Error fetching data for %s (attempt %d/%d): %s",
                    station_id,
                    attempt,
                    max_retries,
                    exc.reason,
                )
            else:
                logger.info("Fetched observation from %s (attempt %d)", station_id, attempt)
                return observation

            if made < total_attempts:
                sleep(retry_delay)

        logger.warning("Exhausted retries for station %s, moving to next.", station_id)

    raise StationsExhaustedError(failures)
