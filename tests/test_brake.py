"""Tests for the brake table and brake controllers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rcthrottle.brake import BrakeConfig, CustomController, DisabledController
from rcthrottle.core.errors import ConfigError


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ============================================================================
# Brake Config Tests
# ============================================================================


class TestBrakeConfig:
    """Tests for BrakeConfig loading and lookup."""

    def test_default_table(self) -> None:
        config = BrakeConfig.default()
        assert config.delta_steps == (0.05, 0.3, 0.5)
        assert config.data == (-0.1, -0.5, -1.0)

    @pytest.mark.parametrize("current,target,expected", [
        (0.5, 0.48, 0.48),    # delta 0.02 below first step: target kept
        (0.5, 0.4, -0.1),     # delta 0.1
        (0.5, 0.25, -0.1),    # delta 0.25
        (0.9, 0.5, -0.5),     # delta 0.4
        (0.75, 0.25, -1.0),   # delta 0.5 on last step
        (1.0, 0.0, -1.0),     # delta beyond last step
    ])
    def test_value_of(self, current: float, target: float, expected: float) -> None:
        assert BrakeConfig.default().value_of(current, target) == pytest.approx(expected)

    def test_from_json(self, tmp_path: Path) -> None:
        path = write_json(tmp_path / "brake.json", {"delta_steps": [0.1, 0.2], "data": [-0.2, -0.8]})
        config = BrakeConfig.from_json(path)
        assert config.delta_steps == (0.1, 0.2)
        assert config.data == (-0.2, -0.8)

    def test_from_json_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="unable to read"):
            BrakeConfig.from_json(tmp_path / "missing.json")

    def test_from_json_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "brake.json"
        path.write_text("{delta_steps", encoding="utf-8")
        with pytest.raises(ConfigError, match="unmarshal"):
            BrakeConfig.from_json(path)

    @pytest.mark.parametrize("data", [
        {"delta_steps": [], "data": []},
        {"delta_steps": [0.1, 0.2], "data": [-0.5]},
        {"delta_steps": [0.3, 0.1], "data": [-0.1, -0.5]},
        {"delta_steps": [0.1, 0.1], "data": [-0.1, -0.5]},
        {"delta_steps": ["a"], "data": [-0.1]},
        [0.1, 0.2],
    ])
    def test_from_json_rejects_invalid_table(self, tmp_path: Path, data) -> None:
        path = write_json(tmp_path / "brake.json", data)
        with pytest.raises(ConfigError):
            BrakeConfig.from_json(path)


# ============================================================================
# Brake Controller Tests
# ============================================================================


class TestDisabledController:
    """Tests for the passthrough controller."""

    def test_passthrough(self) -> None:
        controller = DisabledController()
        controller.set_real_throttle(0.9)
        assert controller.adjust_throttle(0.1) == 0.1
        assert controller.adjust_throttle(-0.4) == -0.4


class TestCustomController:
    """Tests for table-driven braking and factor-driven acceleration."""

    def test_initial_real_throttle_is_zero(self) -> None:
        assert CustomController().get_real_throttle() == 0.0

    def test_acceleration_with_unit_factor(self) -> None:
        controller = CustomController()
        controller.set_real_throttle(0.2)
        assert controller.adjust_throttle(0.6) == pytest.approx(0.6)

    def test_acceleration_with_factor(self) -> None:
        controller = CustomController(accelerator_factor=0.5)
        controller.set_real_throttle(0.2)
        assert controller.adjust_throttle(0.6) == pytest.approx(0.4)

    def test_acceleration_capped_to_one(self) -> None:
        controller = CustomController(accelerator_factor=3.0)
        controller.set_real_throttle(0.5)
        assert controller.adjust_throttle(0.9) == pytest.approx(1.0)

    @pytest.mark.parametrize("factor", [None, 0.0])
    def test_acceleration_without_factor_applies_target(self, factor) -> None:
        controller = CustomController(accelerator_factor=factor)
        controller.set_real_throttle(0.1)
        assert controller.adjust_throttle(0.7) == pytest.approx(0.7)

    def test_small_deceleration_keeps_target(self) -> None:
        controller = CustomController()
        controller.set_real_throttle(0.5)
        assert controller.adjust_throttle(0.47) == pytest.approx(0.47)

    def test_brutal_deceleration_brakes(self) -> None:
        controller = CustomController()
        controller.set_real_throttle(0.9)
        assert controller.adjust_throttle(0.2) == pytest.approx(-1.0)

    def test_same_value_is_not_acceleration(self) -> None:
        controller = CustomController(accelerator_factor=0.5)
        controller.set_real_throttle(0.4)
        assert controller.adjust_throttle(0.4) == pytest.approx(0.4)

    def test_invalid_table_rejected(self) -> None:
        """An invalid table fails at construction, not on the first braking tick."""
        with pytest.raises(ConfigError):
            CustomController(config=BrakeConfig(delta_steps=[], data=[]))
        with pytest.raises(ConfigError):
            CustomController(config=BrakeConfig(delta_steps=[0.3, 0.1], data=[-0.1, -0.5]))

    def test_custom_table(self) -> None:
        table = BrakeConfig(delta_steps=[0.1], data=[-0.3])
        controller = CustomController(config=table)
        controller.set_real_throttle(0.5)
        assert controller.adjust_throttle(0.3) == pytest.approx(-0.3)
