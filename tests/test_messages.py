"""Tests for the bus message models and their JSON wire format."""

from __future__ import annotations

import json

import pytest

from rcthrottle.core.errors import MessageDecodeError, MessageEncodeError
from rcthrottle.integration.messages import (
    DriveMode,
    DriveModeMessage,
    SpeedZone,
    SpeedZoneMessage,
    SteeringMessage,
    ThrottleMessage,
)


class TestThrottleMessage:
    """Tests for ThrottleMessage encoding."""

    def test_encode_uses_named_fields(self) -> None:
        """Encoded payload is a compact JSON object."""
        payload = ThrottleMessage(throttle=0.5, confidence=1.0).encode()
        assert json.loads(payload) == {"throttle": 0.5, "confidence": 1.0}
        assert b" " not in payload

    def test_decode_ignores_unknown_fields(self) -> None:
        msg = ThrottleMessage.decode(b'{"throttle": 0.2, "confidence": 0.9, "frame": 12}')
        assert msg == ThrottleMessage(throttle=0.2, confidence=0.9)

    def test_decode_missing_fields_default_to_zero(self) -> None:
        assert ThrottleMessage.decode(b'{}') == ThrottleMessage(throttle=0.0, confidence=0.0)

    def test_decode_accepts_integers(self) -> None:
        msg = ThrottleMessage.decode(b'{"throttle": 1, "confidence": 0}')
        assert msg.throttle == 1.0
        assert isinstance(msg.throttle, float)

    @pytest.mark.parametrize("payload", [
        b'not json',
        b'[0.5, 1.0]',
        b'{"throttle": "fast"}',
        b'{"throttle": true}',
        b'{"throttle": NaN}',
        b'\xff\xfe',
    ])
    def test_decode_rejects_invalid_payload(self, payload: bytes) -> None:
        with pytest.raises(MessageDecodeError):
            ThrottleMessage.decode(payload)

    def test_encode_rejects_non_finite_values(self) -> None:
        with pytest.raises(MessageEncodeError):
            ThrottleMessage(throttle=float("inf"), confidence=1.0).encode()


class TestSteeringMessage:
    """Tests for SteeringMessage decoding."""

    def test_decode_negative_steering(self) -> None:
        msg = SteeringMessage.decode(b'{"steering": -0.75, "confidence": 0.8}')
        assert msg.steering == pytest.approx(-0.75)
        assert msg.confidence == pytest.approx(0.8)


class TestEnumMessages:
    """Tests for drive mode and speed zone messages."""

    def test_drive_mode_encoded_by_name(self) -> None:
        payload = DriveModeMessage(drive_mode=DriveMode.PILOT).encode()
        assert json.loads(payload) == {"drive_mode": "PILOT"}

    @pytest.mark.parametrize("raw,expected", [
        (b'{"drive_mode": "COPILOT"}', DriveMode.COPILOT),
        (b'{"drive_mode": "user"}', DriveMode.USER),
        (b'{"drive_mode": 2}', DriveMode.PILOT),
        (b'{}', DriveMode.INVALID),
    ])
    def test_drive_mode_decode(self, raw: bytes, expected: DriveMode) -> None:
        assert DriveModeMessage.decode(raw).drive_mode == expected

    def test_unknown_drive_mode_rejected(self) -> None:
        with pytest.raises(MessageDecodeError):
            DriveModeMessage.decode(b'{"drive_mode": "TURBO"}')
        with pytest.raises(MessageDecodeError):
            DriveModeMessage.decode(b'{"drive_mode": 42}')

    def test_speed_zone_decode(self) -> None:
        assert SpeedZoneMessage.decode(b'{"speed_zone": "FAST"}').speed_zone == SpeedZone.FAST
        assert SpeedZoneMessage.decode(b'{"speed_zone": 1}').speed_zone == SpeedZone.SLOW
        assert SpeedZoneMessage.decode(b'{}').speed_zone == SpeedZone.UNKNOWN

    def test_speed_zone_encoded_by_name(self) -> None:
        payload = SpeedZoneMessage(speed_zone=SpeedZone.NORMAL).encode()
        assert SpeedZoneMessage.decode(payload).speed_zone == SpeedZone.NORMAL
        assert b'"NORMAL"' in payload
