"""
Brake Controllers

Shape the throttle computed by the processor against the throttle really
measured on the vehicle:
- DisabledController: passthrough
- CustomController: table-driven braking, factor-driven acceleration
"""

import logging
import threading

from rcthrottle.brake.config import BrakeConfig
from rcthrottle.core.interfaces import IBrakeController

logger = logging.getLogger(__name__)


class DisabledController(IBrakeController):
    """Brake feature off: target throttle is applied as is."""

    def set_real_throttle(self, throttle: float) -> None:
        pass

    def adjust_throttle(self, target_throttle: float) -> float:
        return target_throttle


class CustomController(IBrakeController):
    """
    Brake controller driven by a deceleration table.

    ACCELERATION (target > real):
        throttle = real + (target - real) * accelerator_factor, capped to 1.0

    DECELERATION (target <= real):
        Lookup in BrakeConfig with delta = real - target.
        Small deltas keep the target, large deltas produce negative
        (braking) throttle.
    """

    MAX_THROTTLE = 1.0

    def __init__(self, config: BrakeConfig | None = None, accelerator_factor: float | None = 1.0):
        """
        Initialize brake controller.

        Args:
            config: Brake table (default: BrakeConfig.default())
            accelerator_factor: Gain applied on acceleration; None or 0
                                applies the target directly

        Raises:
            ConfigError: If the brake table is invalid
        """
        self.config = config if config is not None else BrakeConfig.default()
        self.config.validate()
        self.accelerator_factor = accelerator_factor

        self._lock = threading.Lock()
        self._real_throttle = 0.0

    def set_real_throttle(self, throttle: float) -> None:
        with self._lock:
            self._real_throttle = throttle

    def get_real_throttle(self) -> float:
        with self._lock:
            return self._real_throttle

    def adjust_throttle(self, target_throttle: float) -> float:
        # Single snapshot, feedback may change while computing
        real = self.get_real_throttle()

        if target_throttle > real:
            if not self.accelerator_factor:
                return target_throttle
            throttle = real + (target_throttle - real) * self.accelerator_factor
            return min(throttle, self.MAX_THROTTLE)

        throttle = self.config.value_of(real, target_throttle)
        if throttle != target_throttle:
            logger.debug("brake: real=%.3f target=%.3f -> %.3f", real, target_throttle, throttle)
        return throttle


__all__ = ['DisabledController', 'CustomController']
