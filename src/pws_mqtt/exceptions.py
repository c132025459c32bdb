"""Error taxonomy.

Only ``FetchError`` is recovered from (inside the station retrier). Everything
else propagates to the CLI, which maps the error class to a process exit code.
"""

from __future__ import annotations


class PwsMqttError(Exception):
    """Base class for all service errors."""


# =============================================================================
# Configuration (pre-flight, never retried)
# =============================================================================


class ConfigError(PwsMqttError):
    """Configuration could not be loaded."""


class MissingConfigError(ConfigError):
    """A required setting is unset or empty."""


class InvalidPollIntervalError(ConfigError):
    """``EXEC_EVERY`` is not a usable duration."""


class InvalidSensorNameError(ConfigError):
    """``SENSOR_NAME`` is empty or contains MQTT wildcard/NUL characters."""


# =============================================================================
# Upstream fetch
# =============================================================================


class FetchError(PwsMqttError):
    """A single fetch for one station failed."""

    def __init__(self, station_id: str, reason: str) -> None:
        super().__init__(f"{station_id}: {reason}")
        self.station_id = station_id
        self.reason = reason


class StationsExhaustedError(PwsMqttError):
    """Every configured station used up its retry budget."""

    def __init__(self, failures: dict[str, str]) -> None:
        tried = ", ".join(f"{station} ({reason})" for station, reason in failures.items())
        super().__init__(f"Failed to fetch data from all stations: {tried}")
        self.failures = failures


# =============================================================================
# Broker lifecycle (no reconnect; the supervisor restarts the process)
# =============================================================================


class BrokerLifecycleError(PwsMqttError):
    """The broker connection reached a terminal state."""


class BrokerClosedError(BrokerLifecycleError):
    """Connection closed or client went offline."""


class BrokerProtocolError(BrokerLifecycleError):
    """Connection refused or transport/protocol error."""
