"""
Throttle Processors

Compute the autopilot target throttle from steering (and speed zone).

The throttle decreases as steering increases to prevent overshooting in
turns. Three policies are available:
- SteeringProcessor: linear interpolation between min and max throttle
- SpeedZoneProcessor: fixed levels chosen from speed zone and steering tier
- CustomSteeringProcessor: lookup in a steering -> throttle table
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import numpy as np

from rcthrottle.core.errors import ConfigError
from rcthrottle.core.interfaces import IThrottleProcessor
from rcthrottle.integration.messages import SpeedZone

logger = logging.getLogger(__name__)


class SteeringProcessor(IThrottleProcessor):
    """
    Linear throttle policy.

        throttle = min + (max - min) * (1 - |steering|)

    Straight steering gives max throttle, full lock gives min throttle.
    """

    def __init__(self, min_throttle: float, max_throttle: float):
        self.min_throttle = min_throttle
        self.max_throttle = max_throttle

    def process(self, steering: float) -> float:
        return self.min_throttle + (self.max_throttle - self.min_throttle) * (1.0 - abs(steering))


class SpeedZoneProcessor(IThrottleProcessor):
    """
    Throttle policy driven by the speed zone.

    Decision table on |steering|:

        Zone     | < moderate | [moderate, full) | >= full
        ---------+------------+------------------+--------
        FAST     | fast       | normal           | slow
        NORMAL   | normal     | normal           | slow (only > full)
        SLOW     | slow       | slow             | slow
        UNKNOWN  | slow       | slow             | slow

    NORMAL zone compares strictly against full_steering and has no
    moderate tier.
    """

    def __init__(
        self,
        slow_throttle: float,
        normal_throttle: float,
        fast_throttle: float,
        moderate_steering: float,
        full_steering: float,
    ):
        """
        Initialize speed zone processor.

        Args:
            slow_throttle: Throttle in slow zone or sharp turns
            normal_throttle: Throttle in normal zone or moderate turns
            fast_throttle: Throttle in fast zone on straight lines
            moderate_steering: |steering| threshold for moderate turns
            full_steering: |steering| threshold for sharp turns
        """
        self.slow_throttle = slow_throttle
        self.normal_throttle = normal_throttle
        self.fast_throttle = fast_throttle
        self.moderate_steering = moderate_steering
        self.full_steering = full_steering

        self._lock = threading.Lock()
        self._speed_zone = SpeedZone.UNKNOWN

    def set_speed_zone(self, zone: SpeedZone) -> None:
        with self._lock:
            self._speed_zone = zone

    def get_speed_zone(self) -> SpeedZone:
        with self._lock:
            return self._speed_zone

    def process(self, steering: float) -> float:
        abs_steering = abs(steering)
        zone = self.get_speed_zone()

        if zone == SpeedZone.FAST:
            if abs_steering >= self.full_steering:
                return self.slow_throttle
            if abs_steering >= self.moderate_steering:
                return self.normal_throttle
            return self.fast_throttle

        if zone == SpeedZone.NORMAL:
            if abs_steering > self.full_steering:
                return self.slow_throttle
            return self.normal_throttle

        # SLOW, UNKNOWN
        return self.slow_throttle


@dataclass(frozen=True)
class SteeringThrottleConfig:
    """
    Steering -> throttle table (parallel sequences).

    Attributes:
        steering_values: Strictly increasing |steering| breakpoints in (0, 1]
        throttle_steps: Strictly decreasing throttle values in (0, 1]
    """
    steering_values: Tuple[float, ...]
    throttle_steps: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'steering_values', tuple(float(v) for v in self.steering_values))
        object.__setattr__(self, 'throttle_steps', tuple(float(v) for v in self.throttle_steps))

    @classmethod
    def from_json(cls, file_name: str | Path) -> 'SteeringThrottleConfig':
        """
        Load and validate table from JSON file.

        JSON layout:
            {"steering_values": [...], "throttle_steps": [...]}

        Raises:
            ConfigError: If file can't be read, parsed or validated
        """
        path = Path(file_name)
        try:
            content = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"unable to read content from {path} file: {e}") from e

        try:
            data = json.loads(content)
        except ValueError as e:
            raise ConfigError(f"unable to unmarshal json content from {path} file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"steering config {path} must be a JSON object")

        try:
            config = cls(
                steering_values=data.get('steering_values', []),
                throttle_steps=data.get('throttle_steps', []),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid steering config {path}: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """
        Check table consistency.

        Raises:
            ConfigError: On the first violated rule
        """
        steering = np.asarray(self.steering_values, dtype=float)
        throttle = np.asarray(self.throttle_steps, dtype=float)

        if steering.size == 0 or throttle.size == 0:
            raise ConfigError("steering config: steering_values and throttle_steps must not be empty")
        if steering.size != throttle.size:
            raise ConfigError(
                f"steering config: steering_values ({steering.size}) and "
                f"throttle_steps ({throttle.size}) must have the same length"
            )
        if np.any(throttle <= 0.0) or np.any(throttle > 1.0):
            raise ConfigError(f"steering config: throttle_steps must be in (0, 1]: {self.throttle_steps}")
        if np.any(np.diff(throttle) >= 0.0):
            raise ConfigError(f"steering config: throttle_steps must be strictly decreasing: {self.throttle_steps}")
        if np.any(steering <= 0.0) or np.any(steering > 1.0):
            raise ConfigError(f"steering config: steering_values must be in (0, 1]: {self.steering_values}")
        if np.any(np.diff(steering) <= 0.0):
            raise ConfigError(f"steering config: steering_values must be strictly increasing: {self.steering_values}")

    def value_of(self, steering: float) -> float:
        """
        Lookup throttle for a steering value.

        Args:
            steering: Steering in [-1, 1], sign is ignored

        Returns:
            Throttle step of the interval containing |steering|
        """
        abs_steering = abs(steering)
        if abs_steering < self.steering_values[0]:
            return self.throttle_steps[0]

        # Number of breakpoints <= |steering|
        idx = int(np.searchsorted(self.steering_values, abs_steering, side='right'))
        return self.throttle_steps[idx - 1]


class CustomSteeringProcessor(IThrottleProcessor):
    """Throttle policy read from a SteeringThrottleConfig table."""

    def __init__(self, config: SteeringThrottleConfig):
        self.config = config

    @classmethod
    def from_json(cls, file_name: str | Path) -> 'CustomSteeringProcessor':
        config = SteeringThrottleConfig.from_json(file_name)
        logger.info("custom steering table loaded from %s (%d steps)", file_name, len(config.steering_values))
        return cls(config)

    def process(self, steering: float) -> float:
        return self.config.value_of(steering)


__all__ = [
    'SteeringProcessor',
    'SpeedZoneProcessor',
    'SteeringThrottleConfig',
    'CustomSteeringProcessor',
]
