"""
Service configuration.

All settings come from the environment (or a ``.env`` file in the working
directory) and are loaded once at startup into an immutable ``Settings``
object that is passed explicitly to every component. Nothing else in the
package reads the environment.

Usage::

    from pws_mqtt.config import load_settings

    settings = load_settings()
    settings.station_ids  # ("KXYZ123", "KXYZ456")
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pws_mqtt.exceptions import (
    ConfigError,
    InvalidPollIntervalError,
    InvalidSensorNameError,
    MissingConfigError,
)

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_CLIENT_ID = "mqtt-weather-sensor"
DEFAULT_RETRIES = 5
DEFAULT_POLL_INTERVAL = timedelta(minutes=1)

# MQTT wildcards and NUL are not allowed inside a topic segment
_RESERVED_TOPIC_CHARS = re.compile(r"[+#\x00]")

# =============================================================================
# Duration parsing ("5s", "10m", "1h", "2m30s", "1.5h", bare number = ms)
# =============================================================================

_UNIT_MS: dict[str, float] = {
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
    "w": 604_800_000,
}
_NUMBER = r"(?:\d+(?:\.\d+)?|\.\d+)"
# A single bare number, or one or more groups that each carry a unit
_DURATION_RE = re.compile(
    rf"\s*{_NUMBER}\s*|(?:\s*{_NUMBER}\s*(?:ms|s|m|h|d|w))+\s*", re.IGNORECASE
)
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)\s*(ms|s|m|h|d|w)?", re.IGNORECASE)


def parse_duration(text: str) -> timedelta:
    """
    Parse a compact duration string.

    Args:
        text: One or more ``<number><unit>`` groups. Units are ``ms``, ``s``,
            ``m``, ``h``, ``d`` and ``w``; a number without a unit is
            milliseconds.

    Returns:
        The summed duration.

    Raises:
        ValueError: If the text is not a duration or is shorter than 1 ms.
    """
    if not _DURATION_RE.fullmatch(text):
        raise ValueError(f"not a duration: {text!r}")

    total_ms = 0.0
    for number, unit in _DURATION_PART_RE.findall(text):
        total_ms += float(number) * _UNIT_MS[(unit or "ms").lower()]

    if total_ms < 1:
        raise ValueError(f"duration must be at least 1ms: {text!r}")
    return timedelta(milliseconds=total_ms)


# =============================================================================
# Settings
# =============================================================================


class Settings(BaseSettings):
    """Typed service configuration, read from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    sensor_name: str = Field(..., description="Device identity and topic segment")
    api_key: SecretStr = Field(..., description="Weather.com API key")
    station_id: str = Field(..., description="Comma-separated station fallback list")
    retries: int = Field(default=DEFAULT_RETRIES, ge=1, description="Attempts per station")

    mqtt_host: str = Field(..., min_length=1)
    mqtt_port: int = Field(..., ge=1, le=65535)
    mqtt_client_id: str = DEFAULT_CLIENT_ID
    mqtt_tls: bool = False
    mqtt_username: str | None = None
    mqtt_password: SecretStr | None = None

    # None means one-shot mode (EXEC_EVERY set to an empty string)
    exec_every: timedelta | None = DEFAULT_POLL_INTERVAL

    @field_validator("sensor_name")
    @classmethod
    def _check_sensor_name(cls, value: str) -> str:
        if not value or _RESERVED_TOPIC_CHARS.search(value):
            raise ValueError("must not be empty and cannot contain +, # or NUL characters")
        return value

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value

    @field_validator("station_id")
    @classmethod
    def _check_station_id(cls, value: str) -> str:
        if not [s for s in (part.strip() for part in value.split(",")) if s]:
            raise ValueError("at least one station id is required")
        return value

    @field_validator("exec_every", mode="before")
    @classmethod
    def _parse_exec_every(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return parse_duration(value) if value else None
        return value

    @property
    def station_ids(self) -> tuple[str, ...]:
        """Station ids in fallback order."""
        return tuple(s for s in (part.strip() for part in self.station_id.split(",")) if s)

    @property
    def poll_interval(self) -> timedelta | None:
        """Time between publish cycles, or None for a single cycle."""
        return self.exec_every

    @property
    def one_shot(self) -> bool:
        return self.exec_every is None

    def redacted(self) -> dict[str, Any]:
        """Settings as a plain dict for display. Secrets render as asterisks."""
        return {
            key: str(value) if isinstance(value, SecretStr) else value
            for key, value in self.model_dump().items()
        }


# Pydantic error types that mean "a required value was not provided"
_MISSING_TYPES = frozenset({"missing", "string_too_short"})
# Fields whose only validation failure is being empty
_EMPTY_MEANS_MISSING = frozenset({"api_key", "station_id"})


def _classify(exc: ValidationError) -> ConfigError:
    """Pick the config error for a validation failure (missing > name > interval)."""
    problems = {str(err["loc"][0]): err for err in exc.errors() if err["loc"]}

    missing = sorted(
        name
        for name, err in problems.items()
        if err["type"] in _MISSING_TYPES or name in _EMPTY_MEANS_MISSING
    )
    if missing:
        names = ", ".join(name.upper() for name in missing)
        return MissingConfigError(f"Missing required environment variables: {names}")

    if "sensor_name" in problems:
        return InvalidSensorNameError(
            "SENSOR_NAME is not a valid MQTT topic string. It must not be empty "
            "and cannot contain +, #, or null characters."
        )

    if "exec_every" in problems:
        return InvalidPollIntervalError(
            "Invalid EXEC_EVERY value. Use formats like 5s, 10m, 1h, 2m30s."
        )

    details = "; ".join(f"{name.upper()}: {err['msg']}" for name, err in problems.items())
    return ConfigError(f"Invalid configuration: {details}")


def load_settings(env_file: Path | str | None = ".env") -> Settings:
    """
    Load and validate settings.

    Args:
        env_file: Optional dotenv file to read in addition to the process
            environment. ``None`` reads the environment only.

    Raises:
        MissingConfigError: A required variable is unset or empty.
        InvalidSensorNameError: ``SENSOR_NAME`` is not a valid topic segment.
        InvalidPollIntervalError: ``EXEC_EVERY`` is not a valid duration.
        ConfigError: Any other invalid value (e.g. a non-numeric port).
    """
    try:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    except ValidationError as exc:
        raise _classify(exc) from exc
