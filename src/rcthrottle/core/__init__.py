"""
Core

Shared abstractions of the throttle service:
- errors.py: exception hierarchy
- interfaces.py: IMessageBus, IThrottleProcessor, IBrakeController
- config.py: service configuration (YAML)

Only the exception types are re-exported here; import interfaces and
config from their modules.
"""

from .errors import (
    ThrottleServiceError,
    MessageDecodeError,
    MessageEncodeError,
    ConfigError,
    BusError,
)

__all__ = [
    'ThrottleServiceError',
    'MessageDecodeError',
    'MessageEncodeError',
    'ConfigError',
    'BusError',
]
