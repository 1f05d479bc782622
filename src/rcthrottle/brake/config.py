"""
Brake Configuration

Deceleration table used by the custom brake controller.

JSON layout:
    {
        "delta_steps": [0.05, 0.3, 0.5],
        "data": [-0.1, -0.5, -1.0]
    }

delta_steps are thresholds on (real throttle - target throttle), data holds
the throttle to apply once the matching threshold is reached.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import numpy as np

from rcthrottle.core.errors import ConfigError


DEFAULT_DELTA_STEPS = (0.05, 0.3, 0.5)
DEFAULT_DATA = (-0.1, -0.5, -1.0)


@dataclass(frozen=True)
class BrakeConfig:
    """
    Brake table (parallel sequences).

    Attributes:
        delta_steps: Strictly ascending throttle deltas
        data: Output throttle for each delta step
    """
    delta_steps: Tuple[float, ...] = DEFAULT_DELTA_STEPS
    data: Tuple[float, ...] = DEFAULT_DATA

    def __post_init__(self):
        # Normalize to tuples of floats (JSON gives lists, ints are allowed)
        object.__setattr__(self, 'delta_steps', tuple(float(v) for v in self.delta_steps))
        object.__setattr__(self, 'data', tuple(float(v) for v in self.data))

    @classmethod
    def default(cls) -> 'BrakeConfig':
        """Built-in table used when no file is configured."""
        return cls()

    @classmethod
    def from_json(cls, file_name: str | Path) -> 'BrakeConfig':
        """
        Load and validate brake table from JSON file.

        Args:
            file_name: Path to JSON config

        Returns:
            Validated BrakeConfig

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
            raise ConfigError(f"brake config {path} must be a JSON object")

        try:
            config = cls(
                delta_steps=data.get('delta_steps', []),
                data=data.get('data', []),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid brake config {path}: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """
        Check table consistency.

        Raises:
            ConfigError: On empty/mismatched sequences or unordered steps
        """
        if len(self.delta_steps) == 0 or len(self.data) == 0:
            raise ConfigError("brake config: delta_steps and data must not be empty")
        if len(self.delta_steps) != len(self.data):
            raise ConfigError(
                f"brake config: delta_steps ({len(self.delta_steps)}) and "
                f"data ({len(self.data)}) must have the same length"
            )
        if np.any(np.diff(np.asarray(self.delta_steps)) <= 0):
            raise ConfigError(f"brake config: delta_steps must be strictly ascending: {self.delta_steps}")

    def value_of(self, current_throttle: float, target_throttle: float) -> float:
        """
        Compute braking throttle for a deceleration request.

        Args:
            current_throttle: Last measured throttle
            target_throttle: Requested throttle (<= current_throttle)

        Returns:
            target_throttle if the change is negligible, else the brake value
            of the highest delta step reached
        """
        delta = current_throttle - target_throttle

        if delta < self.delta_steps[0]:
            return target_throttle
        if delta >= self.delta_steps[-1]:
            return self.data[-1]

        # Number of steps <= delta, always >= 1 here
        idx = int(np.searchsorted(self.delta_steps, delta, side='right'))
        return self.data[idx - 1]


__all__ = ['BrakeConfig', 'DEFAULT_DELTA_STEPS', 'DEFAULT_DATA']
