"""
Configuration management for the throttle service.
Loads from YAML and provides type-safe access to settings.
"""

import logging
import types
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path

import yaml

from rcthrottle.constants import BusConstants, SpeedZoneConstants, ThrottleConstants
from rcthrottle.core.errors import ConfigError

logger = logging.getLogger(__name__)


def get_project_root() -> Path:
    """
    Find the project root directory by locating pyproject.toml.

    Returns:
        Path to project root directory
    """
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent

    # Fallback: src/rcthrottle/core/config.py -> project root
    return Path(__file__).resolve().parents[3]


# Default config path at project root
DEFAULT_CONFIG_PATH = get_project_root() / "config.yaml"


@dataclass
class BusConfig:
    """Message bus endpoints."""
    publish_url: str = BusConstants.DEFAULT_PUBLISH_URL
    subscribe_url: str = BusConstants.DEFAULT_SUBSCRIBE_URL


@dataclass
class TopicsConfig:
    """Bus topics (all required)."""
    throttle: str = ""
    drive_mode: str = ""
    rc_throttle: str = ""
    steering: str = ""
    throttle_feedback: str = ""
    max_throttle_ctrl: str = ""
    speed_zone: str = ""


@dataclass
class ThrottleConfig:
    """Throttle bounds and pilot publication rate."""
    min: float = ThrottleConstants.DEFAULT_THROTTLE_MIN
    max: float = ThrottleConstants.DEFAULT_THROTTLE_MAX
    publish_pilot_frequency: int = ThrottleConstants.DEFAULT_PUBLISH_PILOT_FREQUENCY


@dataclass
class BrakeFeatureConfig:
    """Brake controller selection."""
    enabled: bool = False
    config: str | None = None             # JSON table, built-in table if None
    accelerator_factor: float = ThrottleConstants.DEFAULT_ACCELERATOR_FACTOR


@dataclass
class ProcessorConfig:
    """Pilot throttle processor selection (speed zone and custom are exclusive)."""
    speed_zone_enabled: bool = False
    slow_throttle: float = SpeedZoneConstants.DEFAULT_SLOW_THROTTLE
    normal_throttle: float = SpeedZoneConstants.DEFAULT_NORMAL_THROTTLE
    fast_throttle: float = SpeedZoneConstants.DEFAULT_FAST_THROTTLE
    moderate_steering: float = SpeedZoneConstants.DEFAULT_MODERATE_STEERING
    full_steering: float = SpeedZoneConstants.DEFAULT_FULL_STEERING

    custom_steering_enabled: bool = False
    custom_steering_config: str | None = None


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "info"


@dataclass
class Config:
    """
    Master configuration container.

    Aggregates all subsystem configurations.
    """
    bus: BusConfig = field(default_factory=BusConfig)
    topics: TopicsConfig = field(default_factory=TopicsConfig)
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)
    brake: BrakeFeatureConfig = field(default_factory=BrakeFeatureConfig)
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """
        Check settings required to start the service.

        Raises:
            ConfigError: On the first invalid setting
        """
        missing = [f.name for f in fields(self.topics) if not getattr(self.topics, f.name)]
        if missing:
            raise ConfigError(f"missing topics: {', '.join(missing)}")

        if self.throttle.publish_pilot_frequency <= 0:
            raise ConfigError(
                f"publish_pilot_frequency must be > 0, got {self.throttle.publish_pilot_frequency}"
            )
        if self.throttle.min > self.throttle.max:
            raise ConfigError(f"throttle min ({self.throttle.min}) > max ({self.throttle.max})")

        if self.processor.speed_zone_enabled and self.processor.custom_steering_enabled:
            raise ConfigError("speed zone and custom steering processors are mutually exclusive")
        if self.processor.custom_steering_enabled and not self.processor.custom_steering_config:
            raise ConfigError("custom steering processor enabled without custom_steering_config")
        if self.processor.moderate_steering >= self.processor.full_steering:
            raise ConfigError(
                f"moderate_steering ({self.processor.moderate_steering}) must be < "
                f"full_steering ({self.processor.full_steering})"
            )


def _parse_section(data: dict, name: str, section_type):
    """
    Build a config section from its YAML mapping.

    Unknown keys are ignored with a warning, missing keys keep defaults.
    """
    section_data = data.get(name)
    if section_data is None:
        return section_type()
    if not isinstance(section_data, dict):
        raise ConfigError(f"config section '{name}' must be a mapping")

    known = {f.name: f for f in fields(section_type)}
    for key in section_data:
        if key not in known:
            logger.warning("unknown key '%s.%s' in config, ignored", name, key)

    values = {
        key: _check_value(f"{name}.{key}", value, known[key].type)
        for key, value in section_data.items() if key in known
    }
    return section_type(**values)


# Accepted YAML types per field type (bool is an int subclass, checked apart)
_ACCEPTED_TYPES = {
    float: (int, float),
    int: (int,),
    bool: (bool,),
    str: (str,),
}


def _check_value(key: str, value, expected):
    """
    Check a YAML value against its field type.

    Integers are accepted for float fields and converted.

    Raises:
        ConfigError: If the value has the wrong type
    """
    optional = False
    if isinstance(expected, types.UnionType):
        # str | None
        optional = type(None) in expected.__args__
        expected = next(t for t in expected.__args__ if t is not type(None))

    if value is None and optional:
        return None

    accepted = _ACCEPTED_TYPES[expected]
    if (isinstance(value, bool) and expected is not bool) or not isinstance(value, accepted):
        raise ConfigError(f"config key '{key}' must be {expected.__name__}, got {value!r}")

    return float(value) if expected is float else value


class ConfigManager:
    """
    Configuration manager with YAML loading.

    Usage:
        # Load from project root config.yaml (default)
        config = ConfigManager.load()

        # Load from specific path
        config = ConfigManager.load('path/to/config.yaml')

        # Use built-in defaults only
        config = ConfigManager.load('default')

        url = config.bus.subscribe_url
    """

    @staticmethod
    def load(config_path: str | Path | None = None) -> Config:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file.
                        If None, tries to load from project root config.yaml.
                        If "default", uses built-in defaults without loading file.

        Returns:
            Config object with loaded settings

        Raises:
            ConfigError: If the file exists but can't be read or parsed
        """
        # If explicitly asked for defaults, return without loading
        if config_path == "default":
            return Config()

        # If no path given, use project root config.yaml
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        path = Path(config_path)
        if not path.exists():
            logger.warning("config file %s not found, using defaults", path)
            return Config()

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"unable to load config {path}: {e}") from e

        if data is None:
            return Config()
        if not isinstance(data, dict):
            raise ConfigError(f"config {path} must be a mapping at top level")

        return Config(
            bus=_parse_section(data, 'bus', BusConfig),
            topics=_parse_section(data, 'topics', TopicsConfig),
            throttle=_parse_section(data, 'throttle', ThrottleConfig),
            brake=_parse_section(data, 'brake', BrakeFeatureConfig),
            processor=_parse_section(data, 'processor', ProcessorConfig),
            logging=_parse_section(data, 'logging', LoggingConfig),
        )

    @staticmethod
    def save(config: Config, config_path: str | Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Config object to save
            config_path: Path to save YAML file

        Raises:
            ConfigError: If the file can't be written
        """
        try:
            with open(config_path, 'w') as f:
                yaml.safe_dump(asdict(config), f, default_flow_style=False, indent=2, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"unable to save config {config_path}: {e}") from e


__all__ = [
    'BusConfig',
    'TopicsConfig',
    'ThrottleConfig',
    'BrakeFeatureConfig',
    'ProcessorConfig',
    'LoggingConfig',
    'Config',
    'ConfigManager',
    'DEFAULT_CONFIG_PATH',
]
