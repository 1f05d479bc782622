#!/usr/bin/env python3
"""
Throttle Server

Standalone process that:
1. Subscribes to drive mode, steering, rc throttle, throttle feedback,
   max throttle and speed zone topics
2. Republishes rc throttle (clamped) in user/copilot mode
3. Publishes computed throttle at a fixed rate in pilot mode

Usage:
    # Start with topics from config.yaml
    rcthrottle --config path/to/config.yaml

    # Topics from the command line
    rcthrottle --topic-throttle robocar/throttle \\
               --topic-drive-mode robocar/drive_mode ...

    # Environment variables are used when a flag is not given
    TOPIC_THROTTLE=robocar/throttle THROTTLE_MAX=0.6 rcthrottle ...

Precedence: command line > environment > config.yaml > built-in defaults.

Architecture:
    Other processes          Throttle Process              Actuator Process
    ┌───────────────┐  ZMQ   ┌────────────────────┐  ZMQ   ┌──────────────┐
    │ mode/steering │───────►│ ThrottleController │───────►│ Apply        │
    │ rc/feedback   │        │ processor + brake  │        │ throttle     │
    └───────────────┘        └────────────────────┘        └──────────────┘
"""

import argparse
import logging
import os
import signal
import sys
from typing import Callable, List, Optional

import zmq

from rcthrottle.brake import BrakeConfig, CustomController, DisabledController
from rcthrottle.constants import EnvVars
from rcthrottle.core.config import Config, ConfigManager
from rcthrottle.core.errors import BusError, ConfigError
from rcthrottle.core.interfaces import IBrakeController, IMessageBus, IThrottleProcessor
from rcthrottle.decision import (
    CustomSteeringProcessor,
    SpeedZoneProcessor,
    SteeringProcessor,
    ThrottleController,
)
from rcthrottle.integration.zmq import ZmqBus
from rcthrottle.utils.terminal import console, print_summary, setup_logging

logger = logging.getLogger(__name__)


# =============================================================================
# Component factories
# =============================================================================

def build_processor(config: Config) -> IThrottleProcessor:
    """
    Create the pilot throttle processor selected in config.

    Raises:
        ConfigError: If both optional processors are enabled or the custom
                     table can't be loaded
    """
    proc = config.processor
    if proc.speed_zone_enabled and proc.custom_steering_enabled:
        raise ConfigError("speed zone and custom steering processors are mutually exclusive")

    if proc.speed_zone_enabled:
        return SpeedZoneProcessor(
            slow_throttle=proc.slow_throttle,
            normal_throttle=proc.normal_throttle,
            fast_throttle=proc.fast_throttle,
            moderate_steering=proc.moderate_steering,
            full_steering=proc.full_steering,
        )

    if proc.custom_steering_enabled:
        if not proc.custom_steering_config:
            raise ConfigError("custom steering processor enabled without config file")
        return CustomSteeringProcessor.from_json(proc.custom_steering_config)

    return SteeringProcessor(min_throttle=config.throttle.min, max_throttle=config.throttle.max)


def build_brake_controller(config: Config) -> IBrakeController:
    """
    Create the brake controller selected in config.

    Raises:
        ConfigError: If the brake table can't be loaded
    """
    brake = config.brake
    if not brake.enabled:
        return DisabledController()

    table = BrakeConfig.from_json(brake.config) if brake.config else BrakeConfig.default()
    return CustomController(config=table, accelerator_factor=brake.accelerator_factor)


# =============================================================================
# Server
# =============================================================================

class ThrottleServer:
    """
    Wires bus, processor, brake controller and throttle controller.

    Pairs with any process publishing drive mode/steering and any actuator
    subscribing to the throttle topic.
    """

    def __init__(self, config: Config, bus_factory: Optional[Callable[[Config], IMessageBus]] = None):
        """
        Initialize throttle server.

        Args:
            config: Validated service configuration
            bus_factory: Builds the message bus (default: ZmqBus from config)

        Raises:
            ConfigError: If processor or brake configuration is invalid
        """
        self.config = config

        # Fail on config before touching the network
        processor = build_processor(config)
        brake_controller = build_brake_controller(config)

        self.bus = (bus_factory or _zmq_bus_factory)(config)

        topics = config.topics
        self.controller = ThrottleController(
            bus=self.bus,
            throttle_topic=topics.throttle,
            drive_mode_topic=topics.drive_mode,
            rc_throttle_topic=topics.rc_throttle,
            steering_topic=topics.steering,
            throttle_feedback_topic=topics.throttle_feedback,
            max_throttle_ctrl_topic=topics.max_throttle_ctrl,
            speed_zone_topic=topics.speed_zone,
            max_throttle=config.throttle.max,
            publish_pilot_frequency=config.throttle.publish_pilot_frequency,
            processor=processor,
            brake_controller=brake_controller,
        )

    def run(self) -> None:
        """
        Serve until interrupted.

        Raises:
            BusError: If subscriptions can't be registered
        """

        # Register signal handler for graceful shutdown
        def signal_handler(sig, frame):
            console.print("\nReceived interrupt signal")
            self.controller.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        try:
            self.controller.start()
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop the controller and close the bus."""
        self.controller.stop()
        self.bus.close()
        logger.info("throttle server stopped")


def _zmq_bus_factory(config: Config) -> IMessageBus:
    try:
        return ZmqBus(publish_url=config.bus.publish_url, subscribe_url=config.bus.subscribe_url)
    except zmq.ZMQError as e:
        raise BusError(f"unable to connect bus: {e}") from e


# =============================================================================
# Command line
# =============================================================================

def _env_str(name: str) -> Optional[str]:
    value = os.environ.get(name)
    return value if value else None


def _env_number(name: str, cast):
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return cast(value)
    except ValueError:
        logger.warning("unable to parse %s value '%s', ignored", name, value)
        return None


def build_parser() -> argparse.ArgumentParser:
    """Create argument parser (defaults come from the environment)."""
    parser = argparse.ArgumentParser(description="Throttle mixer for user, pilot and copilot drive modes")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: <project-root>/config.yaml)",
    )

    # Bus options
    parser.add_argument("--bus-publish-url", type=str, default=_env_str(EnvVars.BUS_PUBLISH_URL),
                        help=f"Broker URL to publish to, use {EnvVars.BUS_PUBLISH_URL} if not set")
    parser.add_argument("--bus-subscribe-url", type=str, default=_env_str(EnvVars.BUS_SUBSCRIBE_URL),
                        help=f"Broker URL to subscribe to, use {EnvVars.BUS_SUBSCRIBE_URL} if not set")

    # Topics
    parser.add_argument("--topic-throttle", type=str, default=_env_str(EnvVars.TOPIC_THROTTLE),
                        help=f"Topic to publish throttle result, use {EnvVars.TOPIC_THROTTLE} if not set")
    parser.add_argument("--topic-drive-mode", type=str, default=_env_str(EnvVars.TOPIC_DRIVE_MODE),
                        help=f"Topic to read drive mode, use {EnvVars.TOPIC_DRIVE_MODE} if not set")
    parser.add_argument("--topic-rc-throttle", type=str, default=_env_str(EnvVars.TOPIC_RC_THROTTLE),
                        help=f"Topic to read rc throttle, use {EnvVars.TOPIC_RC_THROTTLE} if not set")
    parser.add_argument("--topic-steering", type=str, default=_env_str(EnvVars.TOPIC_STEERING),
                        help=f"Topic to read steering, use {EnvVars.TOPIC_STEERING} if not set")
    parser.add_argument("--topic-throttle-feedback", type=str, default=_env_str(EnvVars.TOPIC_THROTTLE_FEEDBACK),
                        help=f"Topic to read measured throttle, use {EnvVars.TOPIC_THROTTLE_FEEDBACK} if not set")
    parser.add_argument("--topic-max-throttle-ctrl", type=str, default=_env_str(EnvVars.TOPIC_MAX_THROTTLE_CTRL),
                        help=f"Topic to read max throttle updates, use {EnvVars.TOPIC_MAX_THROTTLE_CTRL} if not set")
    parser.add_argument("--topic-speed-zone", type=str, default=_env_str(EnvVars.TOPIC_SPEED_ZONE),
                        help=f"Topic to read speed zone, use {EnvVars.TOPIC_SPEED_ZONE} if not set")

    # Throttle bounds
    parser.add_argument("--throttle-min", type=float, default=_env_number(EnvVars.THROTTLE_MIN, float),
                        help=f"Minimum throttle value, use {EnvVars.THROTTLE_MIN} if not set")
    parser.add_argument("--throttle-max", type=float, default=_env_number(EnvVars.THROTTLE_MAX, float),
                        help=f"Maximum throttle value, use {EnvVars.THROTTLE_MAX} if not set")
    parser.add_argument("--publish-pilot-frequency", type=int,
                        default=_env_number(EnvVars.PUBLISH_PILOT_FREQUENCY, int),
                        help=f"Pilot throttle publication rate in Hz, use {EnvVars.PUBLISH_PILOT_FREQUENCY} if not set")

    # Brake
    parser.add_argument("--enable-brake-feature", action="store_true", default=None,
                        help="Shape throttle with the custom brake controller")
    parser.add_argument("--brake-config", type=str, default=None,
                        help="JSON brake table (default: built-in table)")
    parser.add_argument("--accelerator-factor", type=float, default=None,
                        help="Gain applied when accelerating with brake feature")

    # Speed zone processor
    parser.add_argument("--enable-speed-zone-processor", action="store_true", default=None,
                        help="Compute pilot throttle from speed zone")
    parser.add_argument("--slow-zone-throttle", type=float, default=None, help="Throttle in slow zone")
    parser.add_argument("--normal-zone-throttle", type=float, default=None, help="Throttle in normal zone")
    parser.add_argument("--fast-zone-throttle", type=float, default=None, help="Throttle in fast zone")
    parser.add_argument("--moderate-steering", type=float, default=None,
                        help="Steering threshold for moderate turns")
    parser.add_argument("--full-steering", type=float, default=None,
                        help="Steering threshold for sharp turns")

    # Custom steering processor
    parser.add_argument("--enable-custom-steering-processor", action="store_true", default=None,
                        help="Compute pilot throttle from a steering table")
    parser.add_argument("--custom-steering-config", type=str, default=None,
                        help="JSON steering -> throttle table")

    parser.add_argument("--log-level", type=str, default=_env_str(EnvVars.LOG_LEVEL),
                        help=f"Log level (debug, info, warning, error), use {EnvVars.LOG_LEVEL} if not set")

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Copy every argument that was given (flag or env) onto config."""
    overrides = [
        (config.bus, 'publish_url', args.bus_publish_url),
        (config.bus, 'subscribe_url', args.bus_subscribe_url),
        (config.topics, 'throttle', args.topic_throttle),
        (config.topics, 'drive_mode', args.topic_drive_mode),
        (config.topics, 'rc_throttle', args.topic_rc_throttle),
        (config.topics, 'steering', args.topic_steering),
        (config.topics, 'throttle_feedback', args.topic_throttle_feedback),
        (config.topics, 'max_throttle_ctrl', args.topic_max_throttle_ctrl),
        (config.topics, 'speed_zone', args.topic_speed_zone),
        (config.throttle, 'min', args.throttle_min),
        (config.throttle, 'max', args.throttle_max),
        (config.throttle, 'publish_pilot_frequency', args.publish_pilot_frequency),
        (config.brake, 'enabled', args.enable_brake_feature),
        (config.brake, 'config', args.brake_config),
        (config.brake, 'accelerator_factor', args.accelerator_factor),
        (config.processor, 'speed_zone_enabled', args.enable_speed_zone_processor),
        (config.processor, 'slow_throttle', args.slow_zone_throttle),
        (config.processor, 'normal_throttle', args.normal_zone_throttle),
        (config.processor, 'fast_throttle', args.fast_zone_throttle),
        (config.processor, 'moderate_steering', args.moderate_steering),
        (config.processor, 'full_steering', args.full_steering),
        (config.processor, 'custom_steering_enabled', args.enable_custom_steering_processor),
        (config.processor, 'custom_steering_config', args.custom_steering_config),
        (config.logging, 'level', args.log_level),
    ]
    for section, name, value in overrides:
        if value is not None:
            setattr(section, name, value)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for throttle server."""
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if len(argv) == 0:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    try:
        config = apply_overrides(ConfigManager.load(args.config), args)
        setup_logging(config.logging.level)
        config.validate()
    except (ConfigError, ValueError) as e:
        console.print(f"[bold red]✗ Invalid configuration:[/bold red] {e}")
        return 1

    processor_name = (
        "speed zone" if config.processor.speed_zone_enabled
        else "custom steering" if config.processor.custom_steering_enabled
        else "steering"
    )
    print_summary("Throttle Server", [
        ("Bus", f"{config.bus.publish_url} / {config.bus.subscribe_url}"),
        ("Throttle topic", config.topics.throttle),
        ("Throttle", f"min={config.throttle.min} max={config.throttle.max}"),
        ("Pilot frequency", f"{config.throttle.publish_pilot_frequency} Hz"),
        ("Processor", processor_name),
        ("Brake", "enabled" if config.brake.enabled else "disabled"),
    ])

    try:
        server = ThrottleServer(config)
    except (ConfigError, BusError) as e:
        logger.error("unable to init throttle server: %s", e)
        return 1

    try:
        server.run()
    except BusError as e:
        logger.error("unable to start service: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
