"""
Bus Message Models

Defines the records exchanged with upstream/downstream processes:
- Drive mode (enum)
- Steering (value + confidence)
- Throttle (value + confidence), used for rc, feedback, ceiling and output
- Speed zone (enum)

Wire format: compact UTF-8 JSON objects with named fields.
Unknown fields are ignored and missing fields take their zero default,
so producers and consumers can evolve independently.
"""

import json
import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict

from rcthrottle.core.errors import MessageDecodeError, MessageEncodeError


class DriveMode(Enum):
    """Who owns the throttle output."""
    INVALID = 0
    USER = 1
    PILOT = 2
    COPILOT = 3


class SpeedZone(Enum):
    """External classification of the current driving context."""
    UNKNOWN = 0
    SLOW = 1
    NORMAL = 2
    FAST = 3


# =============================================================================
# Encoding helpers
# =============================================================================

def _dumps(data: Dict[str, Any]) -> bytes:
    try:
        return json.dumps(data, separators=(',', ':'), allow_nan=False).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise MessageEncodeError(f"unable to encode {data}: {e}") from e


def _loads(payload: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise MessageDecodeError(f"invalid payload: {e}") from e

    if not isinstance(data, dict):
        raise MessageDecodeError(f"expected JSON object, got {type(data).__name__}")
    return data


def _float_field(data: Dict[str, Any], name: str) -> float:
    value = data.get(name, 0.0)
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MessageDecodeError(f"field '{name}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise MessageDecodeError(f"field '{name}' must be finite, got {value!r}")
    return float(value)


def _enum_field(data: Dict[str, Any], name: str, enum_type):
    value = data.get(name, 0)
    try:
        if isinstance(value, str):
            return enum_type[value.upper()]
        if isinstance(value, int) and not isinstance(value, bool):
            return enum_type(value)
    except (KeyError, ValueError):
        pass
    raise MessageDecodeError(f"field '{name}' has unknown {enum_type.__name__} value {value!r}")


# =============================================================================
# Messages
# =============================================================================

@dataclass
class ThrottleMessage:
    """
    Throttle command or measurement.

    Attributes:
        throttle: Throttle value, conventionally in [-1, 1]
        confidence: Producer confidence [0, 1]
    """
    throttle: float = 0.0
    confidence: float = 0.0

    def encode(self) -> bytes:
        return _dumps(asdict(self))

    @classmethod
    def decode(cls, payload: bytes) -> 'ThrottleMessage':
        data = _loads(payload)
        return cls(
            throttle=_float_field(data, 'throttle'),
            confidence=_float_field(data, 'confidence'),
        )


@dataclass
class SteeringMessage:
    """
    Steering value.

    Attributes:
        steering: Steering in [-1, 1] (negative = left)
        confidence: Producer confidence [0, 1]
    """
    steering: float = 0.0
    confidence: float = 0.0

    def encode(self) -> bytes:
        return _dumps(asdict(self))

    @classmethod
    def decode(cls, payload: bytes) -> 'SteeringMessage':
        data = _loads(payload)
        return cls(
            steering=_float_field(data, 'steering'),
            confidence=_float_field(data, 'confidence'),
        )


@dataclass
class DriveModeMessage:
    """Drive mode selected by the external authority."""
    drive_mode: DriveMode = DriveMode.INVALID

    def encode(self) -> bytes:
        return _dumps({'drive_mode': self.drive_mode.name})

    @classmethod
    def decode(cls, payload: bytes) -> 'DriveModeMessage':
        data = _loads(payload)
        return cls(drive_mode=_enum_field(data, 'drive_mode', DriveMode))


@dataclass
class SpeedZoneMessage:
    """Speed zone computed by an upstream classifier."""
    speed_zone: SpeedZone = SpeedZone.UNKNOWN

    def encode(self) -> bytes:
        return _dumps({'speed_zone': self.speed_zone.name})

    @classmethod
    def decode(cls, payload: bytes) -> 'SpeedZoneMessage':
        data = _loads(payload)
        return cls(speed_zone=_enum_field(data, 'speed_zone', SpeedZone))


__all__ = [
    'DriveMode',
    'SpeedZone',
    'ThrottleMessage',
    'SteeringMessage',
    'DriveModeMessage',
    'SpeedZoneMessage',
]
