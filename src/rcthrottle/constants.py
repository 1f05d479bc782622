"""
Throttle Service Constants

Defaults shared by the CLI, the YAML config and the bus adapter.
Following clean code principles: NO MAGIC NUMBERS!
"""


class ThrottleConstants:
    """Throttle bounds and pilot loop defaults."""

    DEFAULT_THROTTLE_MIN = 0.3
    DEFAULT_THROTTLE_MAX = 0.3        # max defaults to min, like the rc launcher
    DEFAULT_PUBLISH_PILOT_FREQUENCY = 10  # Hz

    # Brake feature
    DEFAULT_ACCELERATOR_FACTOR = 1.0


class SpeedZoneConstants:
    """Speed zone processor defaults."""

    DEFAULT_SLOW_THROTTLE = 0.2
    DEFAULT_NORMAL_THROTTLE = 0.5
    DEFAULT_FAST_THROTTLE = 0.8

    DEFAULT_MODERATE_STEERING = 0.4
    DEFAULT_FULL_STEERING = 0.8


class BusConstants:
    """ZMQ bus endpoints and socket tuning."""

    # Broker endpoints (bind side)
    DEFAULT_BROKER_FRONTEND_URL = "tcp://*:5570"
    DEFAULT_BROKER_BACKEND_URL = "tcp://*:5571"

    # Service endpoints (connect side)
    DEFAULT_PUBLISH_URL = "tcp://localhost:5570"
    DEFAULT_SUBSCRIBE_URL = "tcp://localhost:5571"

    SEND_HIGH_WATER_MARK = 10
    POLL_TIMEOUT_MS = 50
    SUBSCRIBE_TIMEOUT = 2.0       # seconds
    RECEIVER_JOIN_TIMEOUT = 1.0   # seconds


class EnvVars:
    """Environment variables read by the CLI when a flag is not given."""

    BUS_PUBLISH_URL = "BUS_PUBLISH_URL"
    BUS_SUBSCRIBE_URL = "BUS_SUBSCRIBE_URL"

    TOPIC_THROTTLE = "TOPIC_THROTTLE"
    TOPIC_DRIVE_MODE = "TOPIC_DRIVE_MODE"
    TOPIC_RC_THROTTLE = "TOPIC_RC_THROTTLE"
    TOPIC_STEERING = "TOPIC_STEERING"
    TOPIC_THROTTLE_FEEDBACK = "TOPIC_THROTTLE_FEEDBACK"
    TOPIC_MAX_THROTTLE_CTRL = "TOPIC_MAX_THROTTLE_CTRL"
    TOPIC_SPEED_ZONE = "TOPIC_SPEED_ZONE"

    THROTTLE_MIN = "THROTTLE_MIN"
    THROTTLE_MAX = "THROTTLE_MAX"
    PUBLISH_PILOT_FREQUENCY = "PUBLISH_PILOT_FREQUENCY"

    LOG_LEVEL = "LOG_LEVEL"


# Convenience exports
__all__ = [
    'ThrottleConstants',
    'SpeedZoneConstants',
    'BusConstants',
    'EnvVars',
]
