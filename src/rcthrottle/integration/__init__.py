"""
Integration

Everything that touches the outside world:
- messages.py: bus message models and wire codec
- zmq/: ZeroMQ bus adapter and broker
"""

from .messages import (
    DriveMode,
    SpeedZone,
    ThrottleMessage,
    SteeringMessage,
    DriveModeMessage,
    SpeedZoneMessage,
)

__all__ = [
    'DriveMode',
    'SpeedZone',
    'ThrottleMessage',
    'SteeringMessage',
    'DriveModeMessage',
    'SpeedZoneMessage',
]
