"""Tests for the paho-mqtt broker adapter."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import paho.mqtt.client as mqtt
import pytest
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from pws_mqtt.config import Settings
from pws_mqtt.services.mqtt import BrokerEvent, BrokerEventKind, MqttBroker

SUCCESS = ReasonCode(PacketTypes.CONNACK, "Success")
NOT_AUTHORIZED = ReasonCode(PacketTypes.CONNACK, "Not authorized")


@pytest.fixture
def paho_client() -> Iterator[MagicMock]:
    with patch("pws_mqtt.services.mqtt.mqtt.Client") as client_cls:
        client = client_cls.return_value
        client.loop.return_value = mqtt.MQTT_ERR_SUCCESS
        client.publish.return_value.rc = mqtt.MQTT_ERR_SUCCESS
        yield client


def _broker(**kwargs: object) -> MqttBroker:
    return MqttBroker("broker.local", 1883, client_id="weather-test", **kwargs)  # type: ignore[arg-type]


class TestClientSetup:
    """Client construction from connection options."""

    def test_plain_connection(self, paho_client: MagicMock) -> None:
        _broker()

        paho_client.username_pw_set.assert_not_called()
        paho_client.tls_set.assert_not_called()

    def test_callback_api_and_client_id(self) -> None:
        with patch("pws_mqtt.services.mqtt.mqtt.Client") as client_cls:
            _broker()
        args, kwargs = client_cls.call_args
        assert args[0] == mqtt.CallbackAPIVersion.VERSION2
        assert kwargs["client_id"] == "weather-test"

    def test_credentials_and_tls(self, paho_client: MagicMock) -> None:
        _broker(username="user", password="pw", tls=True)

        paho_client.username_pw_set.assert_called_once_with("user", "pw")
        paho_client.tls_set.assert_called_once()

    def test_from_settings(self, paho_client: MagicMock, settings: Settings) -> None:
        broker = MqttBroker.from_settings(settings)

        assert broker.host == "broker.local"
        assert broker.port == 1883
        paho_client.username_pw_set.assert_not_called()


class TestLifecycleEvents:
    """paho callbacks become ordered events."""

    def test_start_connects(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker.start()
        paho_client.connect.assert_called_once_with("broker.local", 1883, keepalive=60)

    def test_connect_event(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker.start()
        broker._on_connect(paho_client, None, None, SUCCESS, None)

        assert broker.poll(0.1) == [BrokerEvent(BrokerEventKind.CONNECT)]
        assert broker.is_connected
        paho_client.loop.assert_called_once_with(timeout=0.1)

    def test_refused_connection_is_error(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker._on_connect(paho_client, None, None, NOT_AUTHORIZED, None)

        events = broker.poll(0)
        assert len(events) == 1
        assert events[0].kind is BrokerEventKind.ERROR
        assert "Not authorized" in events[0].detail
        assert not broker.is_connected

    def test_unreachable_host_is_error(self, paho_client: MagicMock) -> None:
        paho_client.connect.side_effect = ConnectionRefusedError("Connection refused")
        broker = _broker()
        broker.start()

        events = broker.poll(0)
        assert events == [BrokerEvent(BrokerEventKind.ERROR, "Connection refused")]

    def test_disconnect_is_close(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker._on_connect(paho_client, None, None, SUCCESS, None)
        broker._on_disconnect(paho_client, None, None, SUCCESS, None)

        kinds = [event.kind for event in broker.poll(0)]
        assert kinds == [BrokerEventKind.CONNECT, BrokerEventKind.CLOSE]
        assert not broker.is_connected

    def test_lost_connection_is_offline(self, paho_client: MagicMock) -> None:
        paho_client.loop.return_value = mqtt.MQTT_ERR_CONN_LOST
        broker = _broker()

        events = broker.poll(1.0)
        assert events == [
            BrokerEvent(BrokerEventKind.OFFLINE, mqtt.error_string(mqtt.MQTT_ERR_CONN_LOST))
        ]

    def test_lost_before_connack_is_offline(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker.start()
        paho_client.loop.return_value = mqtt.MQTT_ERR_CONN_LOST

        events = broker.poll(0.5)

        assert not broker.is_connected
        assert [event.kind for event in events] == [BrokerEventKind.OFFLINE]

    def test_events_drained_once(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker._on_connect(paho_client, None, None, SUCCESS, None)

        assert len(broker.poll(0)) == 1
        assert broker.poll(0) == []

    def test_events_after_stop_dropped(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker._on_connect(paho_client, None, None, SUCCESS, None)
        broker.poll(0)

        broker.stop()
        broker._on_disconnect(paho_client, None, None, SUCCESS, None)

        paho_client.disconnect.assert_called_once()
        assert broker.poll(0) == []

    def test_stop_before_connect_does_not_disconnect(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker.stop()
        paho_client.disconnect.assert_not_called()


class TestPublish:
    def test_publish_qos0(self, paho_client: MagicMock) -> None:
        broker = _broker()
        broker.publish("homeassistant/sensor/garden/temp/state", "18.2", retain=True)

        paho_client.publish.assert_called_once_with(
            "homeassistant/sensor/garden/temp/state", "18.2", qos=0, retain=True
        )

    def test_unsent_publish_logged(
        self, paho_client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        paho_client.publish.return_value.rc = mqtt.MQTT_ERR_NO_CONN
        broker = _broker()

        with caplog.at_level("WARNING"):
            broker.publish("t", "v", retain=False)

        assert "not sent" in caplog.text
