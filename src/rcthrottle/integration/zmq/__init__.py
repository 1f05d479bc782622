"""
ZMQ Integration

Clean, encapsulated ZMQ communication layer.

Public API:
    Service-side:
        - ZmqBus: IMessageBus over PUB/SUB sockets

    Infrastructure:
        - BusBroker: XSUB/XPUB forwarder all services connect to
"""

from .bus import ZmqBus
from .broker import BusBroker

__all__ = [
    "ZmqBus",
    "BusBroker",
]
