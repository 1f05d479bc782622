#!/usr/bin/env python3
"""
ZMQ Bus Broker

Forwarder that lets every vehicle process meet on two well-known endpoints:
- Frontend (XSUB): producers connect their PUB sockets here
- Backend (XPUB): consumers connect their SUB sockets here

Subscriptions flow backend -> frontend, messages flow frontend -> backend.

Usage:
    # Terminal 1
    rcthrottle-broker

    # Terminal 2
    rcthrottle --topic-throttle robocar/throttle ...
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Optional

import zmq

from rcthrottle.constants import BusConstants
from rcthrottle.utils.terminal import console, setup_logging

logger = logging.getLogger(__name__)


class BusBroker:
    """
    XSUB/XPUB forwarder.

    Data flow:
        PUB ──► frontend (XSUB) ──► zmq.proxy ──► backend (XPUB) ──► SUB
    """

    def __init__(
        self,
        frontend_url: str = BusConstants.DEFAULT_BROKER_FRONTEND_URL,
        backend_url: str = BusConstants.DEFAULT_BROKER_BACKEND_URL,
        context: Optional[zmq.Context] = None,
    ):
        """
        Initialize broker.

        Args:
            frontend_url: URL to bind for producers
            backend_url: URL to bind for consumers
            context: Shared ZMQ context (optional)
        """
        self.frontend_url = frontend_url
        self.backend_url = backend_url

        # Create or use provided context
        self.context = context if context else zmq.Context()
        self.owns_context = context is None

        self.frontend = self.context.socket(zmq.XSUB)
        self.frontend.setsockopt(zmq.LINGER, 0)
        self.frontend.bind(frontend_url)
        logger.info("frontend (XSUB): %s", frontend_url)

        self.backend = self.context.socket(zmq.XPUB)
        self.backend.setsockopt(zmq.LINGER, 0)
        self.backend.bind(backend_url)
        logger.info("backend (XPUB): %s", backend_url)

        self._closed = threading.Event()

    def run(self) -> None:
        """Forward messages until close() is called."""
        try:
            zmq.proxy(self.frontend, self.backend)
        except zmq.ContextTerminated:
            pass
        except zmq.ZMQError as e:
            if not self._closed.is_set():
                raise
            logger.debug("proxy interrupted on close: %s", e)

    def close(self) -> None:
        """Close sockets and terminate owned context."""
        if self._closed.is_set():
            return
        self._closed.set()

        self.frontend.close()
        self.backend.close()

        if self.owns_context:
            self.context.term()
        logger.info("broker shutdown complete")


def main() -> int:
    """Main entry point for bus broker."""
    parser = argparse.ArgumentParser(description="ZMQ bus broker (XSUB/XPUB forwarder)")
    parser.add_argument(
        "--frontend-url",
        type=str,
        default=BusConstants.DEFAULT_BROKER_FRONTEND_URL,
        help=f"URL producers publish to (default: {BusConstants.DEFAULT_BROKER_FRONTEND_URL})",
    )
    parser.add_argument(
        "--backend-url",
        type=str,
        default=BusConstants.DEFAULT_BROKER_BACKEND_URL,
        help=f"URL consumers subscribe to (default: {BusConstants.DEFAULT_BROKER_BACKEND_URL})",
    )
    parser.add_argument("--log-level", type=str, default="info", help="Log level (default: info)")
    args = parser.parse_args()

    setup_logging(args.log_level)

    try:
        broker = BusBroker(frontend_url=args.frontend_url, backend_url=args.backend_url)
    except zmq.ZMQError as e:
        logger.error("unable to start broker: %s", e)
        return 1

    # zmq.proxy only returns on error, interrupt it from the signal handler
    def signal_handler(sig, frame):
        console.print("\nReceived interrupt signal")
        raise KeyboardInterrupt

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    console.rule("Bus Broker Running")
    try:
        broker.run()
    except KeyboardInterrupt:
        console.print("Stopping broker...")
    finally:
        broker.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
