"""Shared fixtures: clean environment, settings, and in-memory broker fakes."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from pws_mqtt.config import Settings
from pws_mqtt.schemas import Observation
from pws_mqtt.services.mqtt import BrokerEvent, BrokerEventKind

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_ENV_VARS = (
    "SENSOR_NAME",
    "API_KEY",
    "STATION_ID",
    "RETRIES",
    "MQTT_HOST",
    "MQTT_PORT",
    "MQTT_CLIENT_ID",
    "MQTT_TLS",
    "MQTT_USERNAME",
    "MQTT_PASSWORD",
    "EXEC_EVERY",
)

#: A realistic ``observations[0]`` from the current-conditions endpoint (units=m).
OBSERVATION_PAYLOAD = {
    "stationID": "KCASANFR1234",
    "obsTimeLocal": "2024-06-15 12:05:00",
    "obsTimeUtc": "2024-06-15T19:05:00Z",
    "neighborhood": "Noe Valley",
    "softwareType": "EasyWeatherV1.6.4",
    "country": "US",
    "solarRadiation": 812.4,
    "lon": -122.43,
    "realtimeFrequency": None,
    "epoch": 1718478300,
    "lat": 37.75,
    "uv": 7.0,
    "winddir": 270,
    "humidity": 55,
    "qcStatus": 1,
    "metric": {
        "temp": 18.2,
        "heatIndex": 18.2,
        "dewpt": 9.1,
        "windChill": 18.2,
        "windSpeed": 12.6,
        "windGust": 20.5,
        "pressure": 1013.2,
        "precipRate": 0.0,
        "precipTotal": 1.3,
        "elev": 61.0,
    },
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate every test from the host's environment and any ``.env`` file."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config_env(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Set a complete, valid environment; keyword overrides win, None unsets."""

    def _set(**overrides: str | None) -> None:
        values: dict[str, str | None] = {
            "SENSOR_NAME": "garden",
            "API_KEY": "secret-key",
            "STATION_ID": "KSTATION1,KSTATION2",
            "MQTT_HOST": "broker.local",
            "MQTT_PORT": "1883",
        }
        values.update(overrides)
        for name, value in values.items():
            if value is None:
                monkeypatch.delenv(name, raising=False)
            else:
                monkeypatch.setenv(name, value)

    return _set


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        sensor_name="garden",
        api_key="secret-key",
        station_id="A,B",
        retries=2,
        mqtt_host="broker.local",
        mqtt_port=1883,
        exec_every=timedelta(minutes=1),
    )


@pytest.fixture
def observation() -> Observation:
    return Observation.model_validate(OBSERVATION_PAYLOAD)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBroker:
    """In-memory ``BrokerLink``: scripted events per poll, recorded publishes."""

    def __init__(
        self,
        script: Iterable[list[BrokerEvent]] = (),
        clock: FakeClock | None = None,
    ) -> None:
        self.script: deque[list[BrokerEvent]] = deque(script)
        self.clock = clock
        self.messages: list[tuple[str, str, bool]] = []
        self.started = False
        self.stopped = False
        self.polls = 0

    def start(self) -> None:
        self.started = True

    def poll(self, timeout: float) -> list[BrokerEvent]:
        self.polls += 1
        if self.clock is not None:
            self.clock.advance(timeout)
        return self.script.popleft() if self.script else []

    def publish(self, topic: str, payload: str, *, retain: bool) -> None:
        self.messages.append((topic, payload, retain))

    def stop(self) -> None:
        self.stopped = True


CONNECT = BrokerEvent(BrokerEventKind.CONNECT)
CLOSE = BrokerEvent(BrokerEventKind.CLOSE, "rc=7")
OFFLINE = BrokerEvent(BrokerEventKind.OFFLINE, "The connection was lost.")
ERROR = BrokerEvent(BrokerEventKind.ERROR, "connection refused: Not authorized")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()
