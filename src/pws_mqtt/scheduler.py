"""
Publish-cycle scheduler.

A small state machine driven by broker lifecycle events::

    CONNECTING ──connect──▶ RUNNING ──(one-shot done)──▶ TERMINATED
        │                      │
        └──close/offline/error─┴──────────────────────▶ TERMINATED (raises)

On entering RUNNING one cycle runs immediately; in timer mode further cycles
run at a fixed rate. Everything happens on the calling thread: between cycles
the scheduler pumps the broker so lifecycle events are handled promptly.
Delays inside a cycle go through ``Scheduler.wait``, which keeps pumping, so
keepalive pings continue through retry backoff.
Because cycles run inline they can never overlap; a tick that falls due while
a cycle is still running is skipped and the schedule restarts from "now".

``close``, ``offline`` and ``error`` are terminal in every state. There is no
reconnect: the process exits and its supervisor restarts it.
"""

from __future__ import annotations

import logging
import time
from enum import StrEnum
from typing import TYPE_CHECKING

from pws_mqtt.exceptions import BrokerClosedError, BrokerProtocolError
from pws_mqtt.services.mqtt import BrokerEventKind

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

    from pws_mqtt.services.mqtt import BrokerEvent, BrokerLink

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 1.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 30.0


class SchedulerState(StrEnum):
    CONNECTING = "connecting"
    RUNNING = "running"
    TERMINATED = "terminated"


class Scheduler:
    """Runs publish cycles while the broker connection is healthy."""

    def __init__(
        self,
        broker: BrokerLink,
        run_cycle: Callable[[Callable[[float], None]], object],
        poll_interval: timedelta | None,
        *,
        clock: Callable[[], float] = time.monotonic,
        tick: float = DEFAULT_TICK_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        """
        Args:
            broker: Broker connection; started and stopped by ``run()``.
            run_cycle: One fetch → publish cycle. It is called with ``wait``
                for its delays. Exceptions propagate.
            poll_interval: Time between cycles, or None for a single cycle.
            clock: Monotonic clock in seconds (injectable for tests).
            tick: Longest time to block in one broker poll.
            connect_timeout: Seconds to wait for the broker to accept the connection.
        """
        self.broker = broker
        self.run_cycle = run_cycle
        self.poll_interval = poll_interval
        self.clock = clock
        self.tick = tick
        self.connect_timeout = connect_timeout
        self.state = SchedulerState.CONNECTING
        self.cycles = 0

    def handle_event(self, event: BrokerEvent) -> None:
        """Apply one broker event to the state machine.

        Raises:
            BrokerClosedError: On ``close`` or ``offline``.
            BrokerProtocolError: On ``error``.
        """
        if self.state is SchedulerState.TERMINATED:
            return

        if event.kind is BrokerEventKind.CONNECT:
            if self.state is SchedulerState.CONNECTING:
                logger.info("Connected to MQTT broker")
                self.state = SchedulerState.RUNNING
            return

        self.state = SchedulerState.TERMINATED
        if event.kind is BrokerEventKind.CLOSE:
            raise BrokerClosedError(f"MQTT connection closed. {event.detail}".strip())
        if event.kind is BrokerEventKind.OFFLINE:
            raise BrokerClosedError(f"MQTT client went offline. {event.detail}".strip())
        raise BrokerProtocolError(f"MQTT error: {event.detail or 'unknown error'}")

    def run(self) -> None:
        """
        Connect, then run cycles until done (one-shot) or a terminal event.

        Returns only after a successful one-shot cycle; in timer mode it runs
        until an error is raised.
        """
        self.broker.start()
        try:
            self._await_connection()
            if self.poll_interval is None:
                self._run_once()
            else:
                self._run_forever(self.poll_interval.total_seconds())
        except BaseException:
            self.state = SchedulerState.TERMINATED
            raise
        finally:
            self.broker.stop()

    def wait(self, seconds: float) -> None:
        """
        Sleep for ``seconds`` while keeping the broker connection serviced.

        Used for delays inside a cycle (retry backoff) so keepalive pings go
        out and terminal broker events are raised as soon as they arrive.
        """
        deadline = self.clock() + seconds
        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                return
            self._pump(min(self.tick, remaining))

    # -------------------------------------------------------------------------

    def _pump(self, timeout: float) -> None:
        for event in self.broker.poll(max(timeout, 0.0)):
            self.handle_event(event)

    def _await_connection(self) -> None:
        deadline = self.clock() + self.connect_timeout
        while self.state is SchedulerState.CONNECTING:
            remaining = deadline - self.clock()
            if remaining <= 0:
                self.state = SchedulerState.TERMINATED
                raise BrokerClosedError(
                    f"No answer from MQTT broker within {self.connect_timeout:g}s"
                )
            self._pump(min(self.tick, remaining))

    def _cycle(self) -> None:
        self.cycles += 1
        logger.debug("Starting publish cycle %d", self.cycles)
        self.run_cycle(self.wait)

    def _run_once(self) -> None:
        self._cycle()
        # Flush queued publishes and surface any disconnect they caused
        self._pump(0)
        self.state = SchedulerState.TERMINATED

    def _run_forever(self, interval: float) -> None:
        next_due = self.clock()
        while True:
            now = self.clock()
            if now >= next_due:
                self._cycle()
                next_due += interval
                now = self.clock()
                if next_due <= now:
                    logger.warning(
                        "Publish cycle took longer than the %gs interval; skipping missed ticks",
                        interval,
                    )
                    next_due = now + interval
                continue
            self._pump(min(self.tick, next_due - now))
