"""
Error Types

Exceptions raised across the throttle service.

Per-message errors (decode/encode, publish) are logged and dropped by the
controller. Startup errors (config, subscription) abort the service.
"""


class ThrottleServiceError(Exception):
    """Base class for all throttle service errors."""


class MessageDecodeError(ThrottleServiceError):
    """Inbound payload could not be decoded."""


class MessageEncodeError(ThrottleServiceError):
    """Outbound message could not be serialized."""


class ConfigError(ThrottleServiceError):
    """Configuration is missing, unreadable or invalid."""


class BusError(ThrottleServiceError):
    """Message bus rejected a subscribe, unsubscribe or publish."""


__all__ = [
    'ThrottleServiceError',
    'MessageDecodeError',
    'MessageEncodeError',
    'ConfigError',
    'BusError',
]
