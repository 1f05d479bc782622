"""
Core Interfaces

Abstract interfaces following Dependency Inversion Principle.
The throttle controller depends on these abstractions, not on a concrete
bus, processor or brake model.
"""

from abc import ABC, abstractmethod
from typing import Callable

from rcthrottle.integration.messages import SpeedZone


# Handler signature: handler(topic, payload)
MessageHandler = Callable[[str, bytes], None]


class IMessageBus(ABC):
    """
    Abstract interface for the publish/subscribe message bus.

    Implementations: ZMQ, Fake (for testing)
    """

    @abstractmethod
    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """
        Register handler for messages published on topic.

        Args:
            topic: Topic name
            handler: Callback invoked as handler(topic, payload)

        Raises:
            BusError: If the bus rejects the subscription
        """
        pass

    @abstractmethod
    def unsubscribe(self, *topics: str) -> None:
        """Stop delivering messages for the given topics."""
        pass

    @abstractmethod
    def publish(self, topic: str, payload: bytes) -> None:
        """
        Publish payload on topic (fire-and-forget).

        Raises:
            BusError: If the message could not be queued
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close bus and cleanup resources."""
        pass


class IThrottleProcessor(ABC):
    """
    Computes a target throttle from the current steering.

    Implementations: SteeringProcessor, SpeedZoneProcessor,
    CustomSteeringProcessor
    """

    @abstractmethod
    def process(self, steering: float) -> float:
        """
        Compute target throttle.

        Args:
            steering: Steering value in range [-1, 1]

        Returns:
            Target throttle
        """
        pass

    def set_speed_zone(self, zone: SpeedZone) -> None:
        """Update current speed zone (ignored by default)."""
        pass


class IBrakeController(ABC):
    """
    Shapes a target throttle against the last measured throttle.

    Implementations: DisabledController, CustomController
    """

    @abstractmethod
    def set_real_throttle(self, throttle: float) -> None:
        """Record last throttle measured on the vehicle."""
        pass

    @abstractmethod
    def adjust_throttle(self, target_throttle: float) -> float:
        """
        Adjust target throttle to avoid abrupt changes.

        Args:
            target_throttle: Throttle requested by the processor

        Returns:
            Throttle to apply
        """
        pass


__all__ = [
    'MessageHandler',
    'IMessageBus',
    'IThrottleProcessor',
    'IBrakeController',
]
