"""Shared fixtures for the throttle service tests."""

from __future__ import annotations

import threading
from typing import Dict, List, Tuple

import pytest

from rcthrottle.core.errors import BusError
from rcthrottle.core.interfaces import IMessageBus, MessageHandler


TOPICS = {
    "throttle_topic": "test/throttle",
    "drive_mode_topic": "test/drive_mode",
    "rc_throttle_topic": "test/rc_throttle",
    "steering_topic": "test/steering",
    "throttle_feedback_topic": "test/throttle_feedback",
    "max_throttle_ctrl_topic": "test/max_throttle",
    "speed_zone_topic": "test/speed_zone",
}


class FakeBus(IMessageBus):
    """In-memory bus recording every publish."""

    def __init__(self, fail_subscribe_on: str | None = None) -> None:
        self.fail_subscribe_on = fail_subscribe_on
        self.handlers: Dict[str, MessageHandler] = {}
        self.published: List[Tuple[str, bytes]] = []
        self.unsubscribed: List[str] = []
        self.closed = False
        self._lock = threading.Lock()
        self._published_event = threading.Event()

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        if topic == self.fail_subscribe_on:
            raise BusError(f"unable to subscribe to {topic}")
        self.handlers[topic] = handler

    def unsubscribe(self, *topics: str) -> None:
        for topic in topics:
            self.handlers.pop(topic, None)
            self.unsubscribed.append(topic)

    def publish(self, topic: str, payload: bytes) -> None:
        with self._lock:
            self.published.append((topic, payload))
        self._published_event.set()

    def close(self) -> None:
        self.closed = True

    def deliver(self, topic: str, payload: bytes) -> None:
        """Push an inbound message to the registered handler."""
        self.handlers[topic](topic, payload)

    def payloads(self, topic: str) -> List[bytes]:
        with self._lock:
            return [p for t, p in self.published if t == topic]

    def wait_for_publish(self, timeout: float = 2.0) -> bool:
        """Block until something is published, then rearm."""
        received = self._published_event.wait(timeout)
        self._published_event.clear()
        return received


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def topics() -> Dict[str, str]:
    return dict(TOPICS)
