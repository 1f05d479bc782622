"""Tests for the pilot throttle processors."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rcthrottle.core.errors import ConfigError
from rcthrottle.decision.processor import (
    CustomSteeringProcessor,
    SpeedZoneProcessor,
    SteeringProcessor,
    SteeringThrottleConfig,
)
from rcthrottle.integration.messages import SpeedZone


# ============================================================================
# Steering Processor Tests
# ============================================================================


class TestSteeringProcessor:
    """Tests for the linear steering policy."""

    @pytest.mark.parametrize("steering,expected", [
        (0.0, 0.8),
        (1.0, 0.2),
        (-1.0, 0.2),
        (0.5, 0.5),
        (-0.5, 0.5),
    ])
    def test_process(self, steering: float, expected: float) -> None:
        processor = SteeringProcessor(min_throttle=0.2, max_throttle=0.8)
        assert processor.process(steering) == pytest.approx(expected)

    def test_ignores_speed_zone(self) -> None:
        processor = SteeringProcessor(min_throttle=0.2, max_throttle=0.8)
        processor.set_speed_zone(SpeedZone.SLOW)
        assert processor.process(0.0) == pytest.approx(0.8)


# ============================================================================
# Speed Zone Processor Tests
# ============================================================================


@pytest.fixture
def zone_processor() -> SpeedZoneProcessor:
    return SpeedZoneProcessor(
        slow_throttle=0.2,
        normal_throttle=0.5,
        fast_throttle=0.8,
        moderate_steering=0.4,
        full_steering=0.8,
    )


class TestSpeedZoneProcessor:
    """Tests for the speed zone decision table."""

    def test_unknown_zone_by_default(self, zone_processor: SpeedZoneProcessor) -> None:
        assert zone_processor.get_speed_zone() == SpeedZone.UNKNOWN
        assert zone_processor.process(0.0) == pytest.approx(0.2)

    @pytest.mark.parametrize("steering,expected", [
        (0.0, 0.8),
        (0.39, 0.8),
        (0.4, 0.5),
        (-0.6, 0.5),
        (0.8, 0.2),
        (-1.0, 0.2),
    ])
    def test_fast_zone(self, zone_processor: SpeedZoneProcessor, steering: float, expected: float) -> None:
        zone_processor.set_speed_zone(SpeedZone.FAST)
        assert zone_processor.process(steering) == pytest.approx(expected)

    @pytest.mark.parametrize("steering,expected", [
        (0.0, 0.5),
        (0.6, 0.5),
        (0.8, 0.5),     # strict comparison on full steering
        (0.81, 0.2),
        (-0.9, 0.2),
    ])
    def test_normal_zone(self, zone_processor: SpeedZoneProcessor, steering: float, expected: float) -> None:
        zone_processor.set_speed_zone(SpeedZone.NORMAL)
        assert zone_processor.process(steering) == pytest.approx(expected)

    @pytest.mark.parametrize("steering", [0.0, 0.5, 1.0])
    def test_slow_zone(self, zone_processor: SpeedZoneProcessor, steering: float) -> None:
        zone_processor.set_speed_zone(SpeedZone.SLOW)
        assert zone_processor.process(steering) == pytest.approx(0.2)


# ============================================================================
# Custom Steering Processor Tests
# ============================================================================


class TestSteeringThrottleConfig:
    """Tests for the steering -> throttle table."""

    @pytest.fixture
    def table(self) -> SteeringThrottleConfig:
        return SteeringThrottleConfig(
            steering_values=[0.1, 0.5, 0.9],
            throttle_steps=[0.8, 0.5, 0.3],
        )

    @pytest.mark.parametrize("steering,expected", [
        (0.0, 0.8),     # below first breakpoint
        (0.1, 0.8),
        (0.3, 0.8),
        (-0.5, 0.5),
        (0.7, 0.5),
        (0.9, 0.3),
        (1.0, 0.3),     # beyond last breakpoint
    ])
    def test_value_of(self, table: SteeringThrottleConfig, steering: float, expected: float) -> None:
        assert table.value_of(steering) == pytest.approx(expected)

    def test_valid_table_passes_validation(self, table: SteeringThrottleConfig) -> None:
        table.validate()

    @pytest.mark.parametrize("steering_values,throttle_steps,message", [
        ([], [], "must not be empty"),
        ([0.1, 0.5], [0.8], "same length"),
        ([0.1, 0.5], [0.8, 1.2], r"\(0, 1\]"),
        ([0.1, 0.5], [0.8, 0.0], r"\(0, 1\]"),
        ([0.1, 0.5], [0.5, 0.8], "strictly decreasing"),
        ([0.0, 0.5], [0.8, 0.5], r"\(0, 1\]"),
        ([0.5, 0.1], [0.8, 0.5], "strictly increasing"),
        ([0.5, 0.5], [0.8, 0.5], "strictly increasing"),
    ])
    def test_invalid_table(self, steering_values, throttle_steps, message: str) -> None:
        config = SteeringThrottleConfig(steering_values=steering_values, throttle_steps=throttle_steps)
        with pytest.raises(ConfigError, match=message):
            config.validate()

    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "steering.json"
        path.write_text(json.dumps({"steering_values": [0.2, 0.6], "throttle_steps": [0.7, 0.4]}))
        config = SteeringThrottleConfig.from_json(path)
        assert config.steering_values == (0.2, 0.6)
        assert config.throttle_steps == (0.7, 0.4)

    def test_from_json_invalid_content(self, tmp_path: Path) -> None:
        path = tmp_path / "steering.json"
        path.write_text(json.dumps({"steering_values": [0.6, 0.2], "throttle_steps": [0.7, 0.4]}))
        with pytest.raises(ConfigError):
            SteeringThrottleConfig.from_json(path)

    def test_from_json_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            SteeringThrottleConfig.from_json(tmp_path / "missing.json")


class TestCustomSteeringProcessor:
    """Tests for the table-driven processor."""

    def test_process_delegates_to_table(self, tmp_path: Path) -> None:
        path = tmp_path / "steering.json"
        path.write_text(json.dumps({"steering_values": [0.2, 0.6], "throttle_steps": [0.7, 0.4]}))
        processor = CustomSteeringProcessor.from_json(path)

        assert processor.process(0.1) == pytest.approx(0.7)
        assert processor.process(-0.3) == pytest.approx(0.7)
        assert processor.process(0.8) == pytest.approx(0.4)
