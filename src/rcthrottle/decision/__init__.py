"""
Decision Module

Throttle decision-making:
- Drive mode arbitration (user, pilot, copilot)
- Target throttle from steering and speed zone
- Max throttle ceiling on manual throttle

Public API:
- ThrottleController: Core orchestrator (bus handlers + pilot loop)
- SteeringProcessor: Linear throttle from steering
- SpeedZoneProcessor: Throttle levels from speed zone
- CustomSteeringProcessor: Throttle from a steering table
- SteeringThrottleConfig: Steering table (JSON loadable)

Simple Usage:
    controller = ThrottleController(bus, ...topics..., max_throttle=0.8,
                                    publish_pilot_frequency=10)
    controller.start()   # blocks until controller.stop()
"""

from .controller import ThrottleController
from .processor import (
    SteeringProcessor,
    SpeedZoneProcessor,
    SteeringThrottleConfig,
    CustomSteeringProcessor,
)

__all__ = [
    'ThrottleController',
    'SteeringProcessor',
    'SpeedZoneProcessor',
    'SteeringThrottleConfig',
    'CustomSteeringProcessor',
]
