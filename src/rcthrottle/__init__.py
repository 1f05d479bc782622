"""
Robocar Throttle Service

Mixes manual (rc), autopilot and copilot throttle sources into a single
throttle command published on the vehicle message bus.

Architecture:
    rcthrottle/
    ├── run.py             - ThrottleServer, command line entry point
    ├── constants.py       - Defaults (no magic numbers)
    ├── core/              - Errors, interfaces, YAML configuration
    ├── decision/          - Decision-making subsystem
    │   ├── controller.py  - ThrottleController (drive mode arbitration)
    │   └── processor.py   - Steering, speed zone and custom processors
    ├── brake/             - Brake controllers and deceleration table
    ├── integration/       - Bus messages and ZMQ transport
    └── utils/             - Terminal logging helpers

Usage Levels:

    Level 1 (Highest) - Server Processes:
        # Terminal 1
        rcthrottle-broker

        # Terminal 2
        rcthrottle --config config.yaml

    Level 2 - Component Access:
        from rcthrottle import ThrottleController
        from rcthrottle.integration.zmq import ZmqBus

        bus = ZmqBus()
        controller = ThrottleController(bus, ...topics...,
                                        max_throttle=0.5,
                                        publish_pilot_frequency=10)
        controller.start()

Public API:
- ThrottleController: Core orchestrator
- ThrottleServer: Fully wired service
"""

from .decision import ThrottleController
from .run import ThrottleServer

__version__ = "0.1.0"

__all__ = ['ThrottleController', 'ThrottleServer']
