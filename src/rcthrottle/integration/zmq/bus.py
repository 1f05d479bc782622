"""
ZMQ Message Bus

Publish/subscribe bus over ZeroMQ, used by the throttle service to talk to
the other vehicle processes.

Architecture:
    Producers (PUB)  ──►  BusBroker (XSUB │ XPUB)  ──►  Consumers (SUB)

Each message is a two-frame multipart: [topic, payload].

Usage:
    bus = ZmqBus(publish_url="tcp://localhost:5570",
                 subscribe_url="tcp://localhost:5571")
    bus.subscribe("robocar/steering", on_steering)
    bus.publish("robocar/throttle", payload)
    bus.close()
"""

import concurrent.futures
import logging
import queue
import threading
from typing import Dict, Optional

import zmq

from rcthrottle.constants import BusConstants
from rcthrottle.core.errors import BusError
from rcthrottle.core.interfaces import IMessageBus, MessageHandler

logger = logging.getLogger(__name__)


class ZmqBus(IMessageBus):
    """
    IMessageBus implementation backed by a PUB and a SUB socket.

    ZMQ sockets are not thread-safe. The PUB socket is shared by the pilot
    loop and the handlers and is guarded by a lock. The SUB socket is owned
    by the receiver thread: subscribe/unsubscribe requests are queued and
    applied by that thread between polls.
    """

    def __init__(
        self,
        publish_url: str = BusConstants.DEFAULT_PUBLISH_URL,
        subscribe_url: str = BusConstants.DEFAULT_SUBSCRIBE_URL,
        context: Optional[zmq.Context] = None,
        poll_timeout_ms: int = BusConstants.POLL_TIMEOUT_MS,
    ):
        """
        Initialize bus and start the receiver thread.

        Args:
            publish_url: Broker frontend URL (messages we publish)
            subscribe_url: Broker backend URL (messages we receive)
            context: ZMQ context (optional, will create if not provided)
            poll_timeout_ms: Receiver poll timeout, bounds subscribe latency
        """
        self.publish_url = publish_url
        self.subscribe_url = subscribe_url
        self.poll_timeout_ms = poll_timeout_ms

        # Create or use provided context
        self.context = context if context else zmq.Context()
        self.owns_context = context is None

        self._pub_lock = threading.Lock()
        self.pub_socket = self.context.socket(zmq.PUB)
        # Drop messages instead of buffering stale throttle commands
        self.pub_socket.setsockopt(zmq.SNDHWM, BusConstants.SEND_HIGH_WATER_MARK)
        self.pub_socket.setsockopt(zmq.LINGER, 0)
        self.pub_socket.connect(publish_url)

        self._sub_requests: queue.Queue = queue.Queue()
        self.sub_socket = self.context.socket(zmq.SUB)
        self.sub_socket.setsockopt(zmq.LINGER, 0)
        self.sub_socket.connect(subscribe_url)

        self._handlers: Dict[str, MessageHandler] = {}
        self._handlers_lock = threading.Lock()

        # Stats
        self.published_count = 0
        self.received_count = 0

        self._running = threading.Event()
        self._running.set()
        self._receiver = threading.Thread(target=self._receive_loop, name="zmq-bus-receiver", daemon=True)
        self._receiver.start()

        logger.info("bus connected: publish=%s subscribe=%s", publish_url, subscribe_url)

    # =========================================================================
    # IMessageBus
    # =========================================================================

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        if not self._running.is_set():
            raise BusError(f"unable to subscribe to {topic}: bus closed")

        with self._handlers_lock:
            self._handlers[topic] = handler

        try:
            self._request(zmq.SUBSCRIBE, topic)
        except BusError:
            with self._handlers_lock:
                self._handlers.pop(topic, None)
            raise

    def unsubscribe(self, *topics: str) -> None:
        with self._handlers_lock:
            for topic in topics:
                self._handlers.pop(topic, None)

        if not self._running.is_set():
            return

        for topic in topics:
            self._request(zmq.UNSUBSCRIBE, topic)

    def publish(self, topic: str, payload: bytes) -> None:
        if not self._running.is_set():
            raise BusError(f"unable to publish on {topic}: bus closed")

        try:
            with self._pub_lock:
                self.pub_socket.send_multipart([topic.encode('utf-8'), payload], flags=zmq.NOBLOCK)
                self.published_count += 1
        except zmq.Again as e:
            raise BusError(f"unable to publish on {topic}: send queue full") from e
        except zmq.ZMQError as e:
            raise BusError(f"unable to publish on {topic}: {e}") from e

    def close(self) -> None:
        """Stop receiver thread, close sockets and terminate owned context."""
        if not self._running.is_set():
            return
        self._running.clear()

        self._receiver.join(timeout=BusConstants.RECEIVER_JOIN_TIMEOUT)

        with self._pub_lock:
            self.pub_socket.close()
        self.sub_socket.close()

        # Terminate context if we own it
        if self.owns_context:
            self.context.term()

        logger.info("bus closed (published=%d, received=%d)", self.published_count, self.received_count)

    # =========================================================================
    # Receiver
    # =========================================================================

    def _request(self, option: int, topic: str) -> None:
        """Queue a SUB socket option change and wait for the receiver to apply it."""
        future = concurrent.futures.Future()
        self._sub_requests.put((option, topic, future))
        try:
            future.result(timeout=BusConstants.SUBSCRIBE_TIMEOUT)
        except concurrent.futures.TimeoutError as e:
            raise BusError(f"timeout while updating subscription for {topic}") from e
        except zmq.ZMQError as e:
            raise BusError(f"unable to update subscription for {topic}: {e}") from e

    def _apply_requests(self) -> None:
        while True:
            try:
                option, topic, future = self._sub_requests.get_nowait()
            except queue.Empty:
                return
            try:
                self.sub_socket.setsockopt(option, topic.encode('utf-8'))
            except zmq.ZMQError as e:
                future.set_exception(e)
            else:
                future.set_result(None)

    def _receive_loop(self) -> None:
        while self._running.is_set():
            try:
                self._apply_requests()
                if not self.sub_socket.poll(self.poll_timeout_ms, zmq.POLLIN):
                    continue
                parts = self.sub_socket.recv_multipart(zmq.NOBLOCK)
            except zmq.Again:
                continue
            except zmq.ZMQError as e:
                if self._running.is_set():
                    logger.error("bus receiver stopped: %s", e)
                break

            self._dispatch(parts)

        # Fail pending requests so callers don't wait for the timeout
        while True:
            try:
                _, topic, future = self._sub_requests.get_nowait()
            except queue.Empty:
                return
            future.set_exception(zmq.ZMQError(msg=f"bus closed before subscription to {topic}"))

    def _dispatch(self, parts) -> None:
        if len(parts) != 2:
            logger.warning("invalid bus message: %d parts", len(parts))
            return

        topic = parts[0].decode('utf-8', errors='replace')
        with self._handlers_lock:
            # SUBSCRIBE is a prefix match, dispatch on exact topic only
            handler = self._handlers.get(topic)
            if handler is None:
                return
            self.received_count += 1

        try:
            handler(topic, parts[1])
        except Exception:
            logger.exception("handler for %s failed", topic)


__all__ = ['ZmqBus']
