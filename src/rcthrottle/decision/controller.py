"""
Throttle Controller

Main controller that mixes user, pilot and copilot throttle sources into a
single throttle command.

Behaviour per drive mode:
- USER / COPILOT: rc throttle is republished, clamped to the max throttle
  ceiling
- PILOT: a periodic task computes throttle from steering through the
  processor and brake controller

State (drive mode, steering, max throttle) is shared between the bus
handlers and the periodic task. Each field has its own lock so unrelated
updates never wait on each other.
"""

import logging
import threading
import time

from rcthrottle.brake import DisabledController
from rcthrottle.core.errors import BusError, MessageDecodeError, MessageEncodeError
from rcthrottle.core.interfaces import IBrakeController, IMessageBus, IThrottleProcessor
from rcthrottle.decision.processor import SteeringProcessor
from rcthrottle.integration.messages import (
    DriveMode,
    DriveModeMessage,
    SpeedZoneMessage,
    SteeringMessage,
    ThrottleMessage,
)

logger = logging.getLogger(__name__)


DEFAULT_MIN_THROTTLE = 0.1
PILOT_CONFIDENCE = 1.0


class ThrottleController:
    """
    Throttle controller.

    Responsibility:
    - Track drive mode, steering and max throttle from bus events
    - Forward throttle feedback to the brake controller
    - Forward speed zone to the processor
    - Republish rc throttle in USER/COPILOT mode
    - Publish computed throttle in PILOT mode at a fixed frequency
    """

    def __init__(
        self,
        bus: IMessageBus,
        throttle_topic: str,
        drive_mode_topic: str,
        rc_throttle_topic: str,
        steering_topic: str,
        throttle_feedback_topic: str,
        max_throttle_ctrl_topic: str,
        speed_zone_topic: str,
        max_throttle: float,
        publish_pilot_frequency: int,
        processor: IThrottleProcessor | None = None,
        brake_controller: IBrakeController | None = None,
    ):
        """
        Initialize throttle controller.

        Args:
            bus: Message bus used for subscriptions and publication
            throttle_topic: Topic to publish throttle result
            drive_mode_topic: Topic carrying drive mode
            rc_throttle_topic: Topic carrying throttle from radio control
            steering_topic: Topic carrying steering
            throttle_feedback_topic: Topic carrying measured throttle
            max_throttle_ctrl_topic: Topic carrying max throttle updates
            speed_zone_topic: Topic carrying speed zone
            max_throttle: Initial max throttle ceiling (manual modes)
            publish_pilot_frequency: Pilot throttle publication rate (Hz)
            processor: Throttle policy in PILOT mode
                       (default: SteeringProcessor(0.1, max_throttle))
            brake_controller: Brake model (default: DisabledController)
        """
        if publish_pilot_frequency <= 0:
            raise ValueError(f"publish_pilot_frequency must be > 0, got {publish_pilot_frequency}")

        self.bus = bus
        self.throttle_topic = throttle_topic
        self.drive_mode_topic = drive_mode_topic
        self.rc_throttle_topic = rc_throttle_topic
        self.steering_topic = steering_topic
        self.throttle_feedback_topic = throttle_feedback_topic
        self.max_throttle_ctrl_topic = max_throttle_ctrl_topic
        self.speed_zone_topic = speed_zone_topic
        self.publish_pilot_frequency = publish_pilot_frequency

        self.processor = processor or SteeringProcessor(
            min_throttle=DEFAULT_MIN_THROTTLE,
            max_throttle=max_throttle,
        )
        self.brake_controller = brake_controller or DisabledController()

        self._drive_mode_lock = threading.Lock()
        self._drive_mode = DriveMode.USER

        self._steering_lock = threading.Lock()
        self._steering = 0.0

        self._max_throttle_lock = threading.Lock()
        self._max_throttle = max_throttle

        self._cancel = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Subscribe to inbound topics and run the pilot publication loop.

        Blocks until stop() is called.

        Raises:
            BusError: If a subscription fails
        """
        if self._cancel.is_set():
            return

        try:
            self._register_callbacks()
        except BusError as e:
            logger.error("unable to register callbacks: %s", e)
            raise

        with self._stop_lock:
            stopped = self._stopped
        if stopped:
            # stop() ran while subscribing, its unsubscribe may have missed some topics
            self._release_subscriptions()
            return

        period = 1.0 / self.publish_pilot_frequency
        next_tick = time.monotonic() + period

        while not self._cancel.wait(max(0.0, next_tick - time.monotonic())):
            self._on_publish_pilot_value()

            next_tick += period
            now = time.monotonic()
            if next_tick < now:
                # Late: drop missed ticks instead of bursting
                next_tick = now + period

    def stop(self) -> None:
        """Stop the publication loop and release subscriptions (idempotent)."""
        self._cancel.set()

        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self._release_subscriptions()

    def _release_subscriptions(self) -> None:
        try:
            self.bus.unsubscribe(*self._topics())
        except BusError as e:
            logger.error("unable to unsubscribe throttle topics: %s", e)

    def _topics(self) -> tuple:
        return (
            self.drive_mode_topic,
            self.rc_throttle_topic,
            self.steering_topic,
            self.throttle_feedback_topic,
            self.max_throttle_ctrl_topic,
            self.speed_zone_topic,
        )

    def _register_callbacks(self) -> None:
        handlers = {
            self.drive_mode_topic: self.on_drive_mode,
            self.rc_throttle_topic: self.on_rc_throttle,
            self.steering_topic: self.on_steering,
            self.throttle_feedback_topic: self.on_throttle_feedback,
            self.max_throttle_ctrl_topic: self.on_max_throttle_ctrl,
            self.speed_zone_topic: self.on_speed_zone,
        }
        for topic, handler in handlers.items():
            self.bus.subscribe(topic, handler)
            logger.debug("subscribed to %s", topic)

    # =========================================================================
    # State accessors
    # =========================================================================

    @property
    def drive_mode(self) -> DriveMode:
        with self._drive_mode_lock:
            return self._drive_mode

    @property
    def steering(self) -> float:
        with self._steering_lock:
            return self._steering

    @property
    def max_throttle(self) -> float:
        with self._max_throttle_lock:
            return self._max_throttle

    # =========================================================================
    # Pilot publication
    # =========================================================================

    def _on_publish_pilot_value(self) -> None:
        if self.drive_mode != DriveMode.PILOT:
            return

        target = self.processor.process(self.steering)
        throttle_msg = ThrottleMessage(
            throttle=self.brake_controller.adjust_throttle(target),
            confidence=PILOT_CONFIDENCE,
        )
        try:
            payload = throttle_msg.encode()
        except MessageEncodeError as e:
            logger.error("unable to marshal %s content: %s", throttle_msg, e)
            return

        self._publish(payload)

    def _publish(self, payload: bytes) -> None:
        try:
            self.bus.publish(self.throttle_topic, payload)
        except BusError as e:
            logger.error("unable to publish throttle on %s: %s", self.throttle_topic, e)

    # =========================================================================
    # Bus handlers
    # =========================================================================

    def on_drive_mode(self, topic: str, payload: bytes) -> None:
        try:
            msg = DriveModeMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal drive mode message from %s: %s", topic, e)
            return

        with self._drive_mode_lock:
            if self._drive_mode != msg.drive_mode:
                logger.info("drive mode: %s -> %s", self._drive_mode.name, msg.drive_mode.name)
            self._drive_mode = msg.drive_mode

    def on_steering(self, topic: str, payload: bytes) -> None:
        try:
            msg = SteeringMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal steering message, skip value: %s", e)
            return

        with self._steering_lock:
            self._steering = msg.steering

    def on_rc_throttle(self, topic: str, payload: bytes) -> None:
        if self.drive_mode not in (DriveMode.USER, DriveMode.COPILOT):
            return

        try:
            throttle_msg = ThrottleMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal throttle msg to check throttle value: %s", e)
            return

        logger.debug("publish new throttle value from rc: %s", throttle_msg.throttle)
        max_throttle = self.max_throttle
        if throttle_msg.throttle > max_throttle:
            logger.debug(
                "throttle upper than max value allowed, patch value from %s to %s",
                throttle_msg.throttle, max_throttle,
            )
            throttle_msg.throttle = max_throttle
            try:
                payload = throttle_msg.encode()
            except MessageEncodeError as e:
                logger.error("unable to marshal throttle msg: %s", e)
                return

        # Unmodified values are republished byte for byte
        self._publish(payload)

    def on_throttle_feedback(self, topic: str, payload: bytes) -> None:
        try:
            msg = ThrottleMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal throttle feedback message: %s", e)
            return

        self.brake_controller.set_real_throttle(msg.throttle)

    def on_max_throttle_ctrl(self, topic: str, payload: bytes) -> None:
        try:
            msg = ThrottleMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal max throttle message: %s", e)
            return

        with self._max_throttle_lock:
            if self._max_throttle != msg.throttle:
                logger.info("max throttle: %.3f -> %.3f", self._max_throttle, msg.throttle)
            self._max_throttle = msg.throttle

    def on_speed_zone(self, topic: str, payload: bytes) -> None:
        try:
            msg = SpeedZoneMessage.decode(payload)
        except MessageDecodeError as e:
            logger.error("unable to unmarshal speedZone message, skip value: %s", e)
            return

        self.processor.set_speed_zone(msg.speed_zone)


__all__ = ['ThrottleController']
