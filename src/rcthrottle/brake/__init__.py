"""
Brake Module

Smooths throttle transitions using the throttle measured on the vehicle.

Public API:
- DisabledController: Passthrough (brake feature off)
- CustomController: Table-driven braking with acceleration factor
- BrakeConfig: Deceleration table (JSON loadable)
"""

from .config import BrakeConfig
from .controller import DisabledController, CustomController

__all__ = [
    'BrakeConfig',
    'DisabledController',
    'CustomController',
]
