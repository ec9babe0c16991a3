#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/models/motor_direction.py
--------------------------------------------
Direction states for the two motor-driver families.

- HBridgeState: TB6612 pair driven by two GPIO direction lines (MA, MB)
- DRV8830Direction: IN2|IN1 code in bits 1..0 of the DRV8830 CONTROL register

Each enum member carries its data (pin pattern / register bits) as fields, so
lookups are total and there is no per-member behaviour to override.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple


# =============================================================================
# TB6612 dual H-bridge
# =============================================================================
class HBridgeState(Enum):
    """
    Direction state of the TB6612 pair.

    | state    | MA   | MB   |
    |----------|------|------|
    | STOP     | LOW  | LOW  |
    | FORWARD  | LOW  | LOW  |
    | BACKWARD | HIGH | HIGH |

    FORWARD and STOP share a pin pattern: forward motion comes from the PWM
    duty alone, only reverse raises the direction lines.
    """
    STOP = (0, "stop", False, False)
    FORWARD = (1, "forward", False, False)
    BACKWARD = (-1, "backward", True, True)

    def __init__(self, sign: int, label: str, pin_ma: bool, pin_mb: bool) -> None:
        self.sign = sign
        self.label = label
        self.pin_ma = pin_ma
        self.pin_mb = pin_mb

    @property
    def pins(self) -> Tuple[bool, bool]:
        return (self.pin_ma, self.pin_mb)

    @classmethod
    def for_speed(cls, speed: float) -> "HBridgeState":
        if speed > 0:
            return cls.FORWARD
        if speed < 0:
            return cls.BACKWARD
        return cls.STOP


# =============================================================================
# DRV8830 voltage-DAC driver
# =============================================================================
DRV8830_MIN_VALUE = 6
DRV8830_MAX_VALUE = 63


class DRV8830Direction(Enum):
    """
    IN2|IN1 bits of the DRV8830 CONTROL register.

    - FREEWHEEL 00: outputs high-impedance, motor coasts
    - REVERSE   01
    - FORWARD   10
    - BRAKE     11: both outputs high, motor brakes
    """
    FREEWHEEL = 0b00
    REVERSE = 0b01
    FORWARD = 0b10
    BRAKE = 0b11

    @property
    def bits(self) -> int:
        return int(self.value)

    @classmethod
    def for_speed(cls, speed: int) -> "DRV8830Direction":
        """
        Direction for a signed speed; the dead zone |speed| < 6 freewheels.
        """
        s = int(speed)
        if abs(s) < DRV8830_MIN_VALUE:
            return cls.FREEWHEEL
        return cls.REVERSE if s < 0 else cls.FORWARD


def voltage_setting(speed: int) -> int:
    """
    VSET magnitude for a signed speed: 0 inside the dead zone, saturated at 63.
    """
    magnitude = abs(int(speed))
    if magnitude < DRV8830_MIN_VALUE:
        return 0
    if magnitude > DRV8830_MAX_VALUE:
        return DRV8830_MAX_VALUE
    return magnitude


__all__ = [
    "HBridgeState",
    "DRV8830_MIN_VALUE",
    "DRV8830_MAX_VALUE",
    "DRV8830Direction",
    "voltage_setting",
]
