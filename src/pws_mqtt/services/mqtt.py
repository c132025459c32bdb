"""MQTT broker adapter.

Wraps a paho-mqtt client and turns its lifecycle callbacks into a queue of
``BrokerEvent`` values. The client is driven from the caller's thread through
``poll()`` (one ``Client.loop()`` iteration), so callbacks run synchronously
and the scheduler sees events in the order they happened.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

import paho.mqtt.client as mqtt

if TYPE_CHECKING:
    from pws_mqtt.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_KEEPALIVE = 60  # seconds


class BrokerEventKind(StrEnum):
    """Lifecycle notifications from the broker connection."""

    CONNECT = "connect"
    CLOSE = "close"
    OFFLINE = "offline"
    ERROR = "error"


@dataclass(frozen=True)
class BrokerEvent:
    kind: BrokerEventKind
    detail: str = ""


class BrokerLink(Protocol):
    """What the scheduler and publisher need from a broker connection."""

    def start(self) -> None: ...

    def poll(self, timeout: float) -> list[BrokerEvent]: ...

    def publish(self, topic: str, payload: str, *, retain: bool) -> None: ...

    def stop(self) -> None: ...


class MqttBroker:
    """paho-mqtt connection driven through ``poll()``."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        client_id: str,
        tls: bool = False,
        username: str | None = None,
        password: str | None = None,
        keepalive: int = DEFAULT_KEEPALIVE,
    ) -> None:
        self.host = host
        self.port = port
        self.keepalive = keepalive
        self._events: deque[BrokerEvent] = deque()
        self._connected = False
        self._stopping = False

        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        if username:
            self._client.username_pw_set(username, password or None)
        if tls:
            self._client.tls_set()
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect

    @classmethod
    def from_settings(cls, settings: Settings) -> MqttBroker:
        return cls(
            settings.mqtt_host,
            settings.mqtt_port,
            client_id=settings.mqtt_client_id,
            tls=settings.mqtt_tls,
            username=settings.mqtt_username,
            password=(
                settings.mqtt_password.get_secret_value() if settings.mqtt_password else None
            ),
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _emit(self, kind: BrokerEventKind, detail: str = "") -> None:
        if self._stopping:
            logger.debug("Dropping %s event after stop: %s", kind, detail)
            return
        self._events.append(BrokerEvent(kind, detail))

    # -- paho callbacks -------------------------------------------------------

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code.is_failure:
            self._emit(BrokerEventKind.ERROR, f"connection refused: {reason_code}")
            return
        self._connected = True
        self._emit(BrokerEventKind.CONNECT)

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        self._connected = False
        self._emit(BrokerEventKind.CLOSE, str(reason_code))

    # -- public API -----------------------------------------------------------

    def start(self) -> None:
        """Open the TCP connection and send CONNECT. Failures become events."""
        logger.info("Connecting to MQTT broker %s:%s", self.host, self.port)
        try:
            self._client.connect(self.host, self.port, keepalive=self.keepalive)
        except (OSError, ValueError) as exc:
            self._emit(BrokerEventKind.ERROR, str(exc) or type(exc).__name__)

    def poll(self, timeout: float) -> list[BrokerEvent]:
        """
        Run one network iteration and return the events it produced.

        Any non-success return from the loop becomes an ``offline`` event,
        including a connection lost before the CONNACK arrived.
        """
        rc = self._client.loop(timeout=timeout)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self._emit(BrokerEventKind.OFFLINE, mqtt.error_string(rc))
        events = list(self._events)
        self._events.clear()
        return events

    def publish(self, topic: str, payload: str, *, retain: bool) -> None:
        """Queue a QoS 0 message. Delivery is not awaited."""
        info = self._client.publish(topic, payload, qos=0, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("Publish to %s not sent: %s", topic, mqtt.error_string(info.rc))

    def stop(self) -> None:
        """Disconnect cleanly; later lifecycle events are ignored."""
        self._stopping = True
        if self._connected:
            self._client.disconnect()
        self._connected = False
